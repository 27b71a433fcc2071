"""
点数据读写测试
"""

import numpy as np
import pytest

from src.clustering.dbscan_concurrent import cluster
from src.data_processing.loader import (
    load_points,
    load_points_dataframe,
    save_labeled_points,
    get_dataset_info,
)


@pytest.fixture
def points_file(tmp_path):
    path = tmp_path / 'points.txt'
    path.write_text(
        "# 注释行\n"
        "0.0 0.0\n"
        "1.5 2.5\n"
        "\n"
        "abc def\n"
        "nan 2.0\n"
        "inf 1.0\n"
        "-3.25\t4.0\n"
        "10 20\n"
    )
    return path


class TestLoadPoints:

    def test_skips_malformed_lines_with_warning(self, points_file):
        with pytest.warns(UserWarning, match="跳过 3 行"):
            points = load_points(points_file)

        assert points.dtype == np.float64
        assert points.tolist() == [[0.0, 0.0], [1.5, 2.5], [-3.25, 4.0], [10.0, 20.0]]

    def test_max_points_counts_valid_rows(self, points_file):
        with pytest.warns(UserWarning):
            points = load_points(points_file, max_points=3)

        assert points.tolist() == [[0.0, 0.0], [1.5, 2.5], [-3.25, 4.0]]

    def test_dataframe_columns(self, tmp_path):
        path = tmp_path / 'clean.txt'
        path.write_text("1 2\n3 4\n")

        df = load_points_dataframe(path)

        assert list(df.columns) == ['x', 'y']
        assert df['x'].tolist() == [1.0, 3.0]

    def test_empty_file(self, tmp_path):
        path = tmp_path / 'empty.txt'
        path.write_text("")

        assert load_points(path).shape == (0, 2)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_points(tmp_path / 'missing.txt')

    def test_dataset_info(self, tmp_path):
        path = tmp_path / 'clean.txt'
        path.write_text("1 2\n-3 4\n5 -6\n")

        info = get_dataset_info(path)

        assert info['n_points'] == 3
        assert info['bounds'] == {'min_x': -3.0, 'max_x': 5.0, 'min_y': -6.0, 'max_y': 4.0}


class TestSaveLabeledPoints:

    def test_writes_one_line_per_point_in_input_order(self, tmp_path):
        points = [(0.0, 0.0), (1.0, 0.0), (50.0, 50.0), (2.0, 0.0)]
        result = cluster(points, epsilon=1.5, min_pts=2)
        output = tmp_path / 'out' / 'output.txt'

        n_written = save_labeled_points(result, output)

        lines = output.read_text().splitlines()
        assert n_written == 4
        assert [line.split() for line in lines] == [
            ['0.0', '0.0', '1'],
            ['1.0', '0.0', '1'],
            ['50.0', '50.0', '0'],
            ['2.0', '0.0', '1'],
        ]

    def test_output_can_be_read_back(self, tmp_path, lattice_with_noise):
        result = cluster(lattice_with_noise, epsilon=1.5, min_pts=3)
        output = tmp_path / 'output.txt'
        save_labeled_points(result, output)

        reloaded = load_points(output)

        np.testing.assert_array_equal(reloaded, lattice_with_noise)
