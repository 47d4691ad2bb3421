import pytest

from marches_dashboard.geo import (
    build_polygon,
    cluster_markers,
    cluster_size_class,
    contains_point,
    in_bounds,
    marker_color,
    parse_point,
    point_wkt,
    polygon_from_geojson,
    project,
    records_in_polygon,
)
from marches_dashboard.models import Record


SQUARE = [(0, 0), (0, 10), (10, 10), (10, 0)]


def at(record_id, lat, lng):
    return Record(record_id, latitude=lat, longitude=lng)


class TestPolygonSearch:
    def test_interior_point_is_inside(self):
        assert contains_point(build_polygon(SQUARE), 5, 5)

    def test_vertex_and_edge_are_inside(self):
        polygon = build_polygon(SQUARE)
        assert contains_point(polygon, 0, 0)
        assert contains_point(polygon, 5, 0)
        assert contains_point(polygon, 10, 7)

    def test_boundary_agrees_with_bounding_box(self):
        polygon = build_polygon(SQUARE)
        for lat, lng in [(0, 0), (10, 10), (0, 5), (5, 10)]:
            assert in_bounds(lat, lng, polygon.bounds)
            assert contains_point(polygon, lat, lng)

    def test_records_in_polygon(self):
        records = [
            at(1, 5, 5),
            at(2, 0, 0),
            at(3, 11, 5),
            Record(4),
            at(5, 10, 10),
        ]
        inside = records_in_polygon(records, build_polygon(SQUARE))
        assert [r.id for r in inside] == [1, 2, 5]

    def test_triangle_vertex_and_slanted_edge(self):
        triangle = build_polygon([(0, 0), (0, 10), (10, 0)])
        records = [at(1, 10, 0), at(2, 5, 5), at(3, 2.5, 7.5), at(4, 6, 6), at(5, 1, 1)]
        # Record 4 is inside the bounding box but beyond the hypotenuse
        assert in_bounds(6, 6, triangle.bounds)
        assert [r.id for r in records_in_polygon(records, triangle)] == [1, 2, 3, 5]

    def test_concave_notch_is_excluded(self):
        # L shape: the top-right quadrant is outside, though within the box
        polygon = build_polygon([(0, 0), (0, 10), (5, 10), (5, 5), (10, 5), (10, 0)])
        records = [at(1, 2, 2), at(2, 8, 8)]
        assert in_bounds(8, 8, polygon.bounds)
        assert [r.id for r in records_in_polygon(records, polygon)] == [1]

    def test_polygon_needs_three_distinct_vertices(self):
        with pytest.raises(ValueError):
            build_polygon([(0, 0), (1, 1), (0, 0)])

    def test_polygon_from_geojson_feature(self):
        feature = {
            "type": "Feature",
            "geometry": {
                "type": "Polygon",
                "coordinates": [[[0, 0], [10, 0], [10, 10], [0, 10], [0, 0]]],
            },
        }
        assert contains_point(polygon_from_geojson(feature), 5, 5)

    def test_polygon_from_geojson_rejects_lines(self):
        with pytest.raises(ValueError):
            polygon_from_geojson({"type": "LineString", "coordinates": [[0, 0], [1, 1]]})


class TestClustering:
    @pytest.mark.parametrize("count,expected", [
        (1, "small"),
        (9, "small"),
        (10, "medium"),
        (50, "medium"),
        (51, "large"),
    ])
    def test_size_class_thresholds(self, count, expected):
        assert cluster_size_class(count) == expected

    def test_size_class_follows_configured_thresholds(self):
        records = [at(i, 34.0, -5.0) for i in range(4)]
        [cluster] = cluster_markers(records, zoom=5, small_below=2, large_above=3)
        assert cluster.size_class == "large"
        assert cluster_markers(records[:2], zoom=5, small_below=2, large_above=3)[0].size_class == "medium"

    def test_project_origin_at_zoom_zero(self):
        assert project(0, 0, 0) == pytest.approx((128, 128))

    def test_nearby_markers_merge_at_low_zoom(self):
        records = [at(1, 34.0, -5.0), at(2, 34.01, -5.01), at(3, 30.0, -9.0)]
        clusters = cluster_markers(records, zoom=5)
        assert [c.count for c in clusters] == [2, 1]
        assert clusters[0].center == pytest.approx((34.005, -5.005))

    def test_markers_split_at_high_zoom(self):
        records = [at(1, 34.0, -5.0), at(2, 34.01, -5.01)]
        assert len(cluster_markers(records, zoom=15)) == 2

    def test_unlocated_records_are_ignored(self):
        assert cluster_markers([Record(1), Record(2, latitude=1.0)], zoom=5) == []

    def test_marker_color_by_organization(self):
        assert marker_color("Commune de Fès") == "green"
        assert marker_color("Région Fès-Meknès") == "orange"
        assert marker_color("Préfecture de Meknès") == "red"
        assert marker_color("Ministère de l'Intérieur") == "purple"
        assert marker_color("Établissement public") == "cadetblue"
        assert marker_color("Autre") == "green"


class TestWkt:
    def test_point_is_longitude_first(self):
        assert point_wkt(34.5, -5.25) == "POINT (-5.25 34.5)"

    def test_parse_point_returns_lat_lng(self):
        assert parse_point("POINT(-5.25 34.5)") == (34.5, -5.25)

    def test_parse_point_blank(self):
        assert parse_point("  ") is None

    @pytest.mark.parametrize("text", ["LINESTRING (0 0, 1 1)", "not wkt"])
    def test_parse_point_rejects_other_input(self, text):
        with pytest.raises(ValueError):
            parse_point(text)
