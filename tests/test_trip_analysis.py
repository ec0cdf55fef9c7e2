import os

import pytest

from bikeshare_eda.config import Config
from bikeshare_eda.exploration.trip_analysis import TripAnalyzer
from bikeshare_eda.features.build_features import MONTHS, WEEKDAYS, season_for_month
from bikeshare_eda.pipeline import clean_rides, cluster_rides


@pytest.fixture
def cleaning(rides):
    return clean_rides(rides, n_jobs=1)


@pytest.fixture
def analyzer(cleaning, tmp_path):
    with TripAnalyzer(cleaning.rides, output_dir=str(tmp_path), basemap=False) as a:
        yield a


def test_weekday_month_aggregate(analyzer, cleaning):
    agg = analyzer.aggregate_by_weekday_month()

    assert list(agg.columns) == ["weekday", "month", "season", "rides", "mean_duration_min"]
    assert agg["rides"].sum() == len(cleaning.rides)
    assert not agg.duplicated(["weekday", "month"]).any()
    assert list(agg["weekday"].cat.categories) == WEEKDAYS

    rides = cleaning.rides
    row = agg.iloc[0]
    members = rides[(rides["weekday"] == row["weekday"]) & (rides["month"] == row["month"])]
    assert row["rides"] == len(members)
    assert row["mean_duration_min"] == pytest.approx(members["duration_min"].mean())


def test_month_aggregate_is_calendar_ordered(analyzer, cleaning):
    monthly = analyzer.aggregate_by_month()
    months = [str(m) for m in monthly["month"]]

    assert months == sorted(months, key=MONTHS.index)
    assert monthly["rides"].sum() == len(cleaning.rides)
    for month, season in zip(months, monthly["season"].astype(str)):
        assert season_for_month(month) == season


def test_plots_are_written(analyzer, cleaning, tmp_path):
    weekday_month = analyzer.aggregate_by_weekday_month()
    monthly = analyzer.aggregate_by_month()
    clustering = cluster_rides(cleaning.rides)

    paths = [
        analyzer.plot_station_map(cleaning.stations, cleaning.map_box),
        analyzer.plot_weekday_trends(weekday_month, metric="rides"),
        analyzer.plot_weekday_trends(weekday_month, metric="mean_duration_min"),
        analyzer.plot_monthly_trend(monthly),
        analyzer.plot_cluster_overlay(clustering.rides, clustering.hulls, cleaning.map_box),
        analyzer.plot_duration_distance_distribution(),
    ]
    for path in paths:
        assert os.path.exists(path)
        assert path.startswith(str(tmp_path))


def test_export_csv(analyzer, tmp_path):
    path = analyzer.export_csv(analyzer.aggregate_by_month(), "rides_by_month")
    assert path == os.path.join(str(tmp_path), "rides_by_month.csv")
    assert os.path.getsize(path) > 0


def test_cluster_overlay_title_shows_configured_k(analyzer, cleaning, monkeypatch):
    # Two clusters requested, title must still name the configured k
    clustering = cluster_rides(cleaning.rides, n_clusters=2)
    titles = []

    def keep_title(filename, fig=None):
        titles.append(fig.axes[0].get_title(loc='left'))

    monkeypatch.setattr(analyzer, "_save_plot", keep_title)
    analyzer.plot_cluster_overlay(clustering.rides, clustering.hulls, cleaning.map_box)
    analyzer.plot_cluster_overlay(clustering.rides, clustering.hulls, cleaning.map_box, n_clusters=2)

    assert f"k={Config.N_CLUSTERS}" in titles[0]
    assert "k=2" in titles[1]
