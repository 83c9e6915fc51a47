import pytest

from basis_api.utils.metrics import PerformanceTimer, compression_percentage, format_file_size


@pytest.mark.parametrize("size, expected", [
    (0, "0 Bytes"),
    (512, "512 Bytes"),
    (1024, "1 KB"),
    (1536, "1.5 KB"),
    (1024 * 1024, "1 MB"),
    (int(2.25 * 1024 ** 3), "2.25 GB"),
])
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected


def test_compression_percentage():
    assert compression_percentage(1000, 250) == 75.0
    assert compression_percentage(1000, 1500) == -50.0
    assert compression_percentage(0, 10) == 0.0


def test_performance_timer():
    with PerformanceTimer() as timer:
        pass
    assert timer.execution_time >= 0
