"""
Unit tests for the sample storage backends.

Both backends share one contract, so most cases run against each of them.
"""

from datetime import timedelta

import polars as pl
import pytest

from conftest import BASE_TIME, make_sample
from sysdash.config.storage_config import StorageConfig
from sysdash.storage.factory import create_storage
from sysdash.storage.memory_storage import MemorySampleStorage
from sysdash.storage.parquet_storage import SAMPLE_SCHEMA, ParquetSampleStorage


@pytest.fixture(params=["parquet", "memory"])
def storage(request, temp_dir):
    if request.param == "parquet":
        backend = ParquetSampleStorage(temp_dir / "metrics.parquet")
    else:
        backend = MemorySampleStorage()
    backend.open()
    yield backend
    backend.close()


@pytest.mark.unit
class TestSampleStorageContract:
    """Test cases shared by every backend."""

    def test_append_assigns_increasing_ids(self, storage):
        ids = [storage.append(make_sample(i)) for i in range(3)]

        assert ids == [1, 2, 3]
        assert storage.count() == 3

    def test_query_range_bounds_inclusive(self, storage):
        for i in range(5):
            storage.append(make_sample(i * 10))

        since = BASE_TIME + timedelta(seconds=10)
        until = BASE_TIME + timedelta(seconds=30)
        result = storage.query_range(since, until)

        assert [r.timestamp for r in result] == [
            BASE_TIME + timedelta(seconds=10),
            BASE_TIME + timedelta(seconds=20),
            BASE_TIME + timedelta(seconds=30),
        ]

    def test_query_range_open_bounds(self, storage):
        for i in range(3):
            storage.append(make_sample(i))

        assert len(storage.query_range()) == 3
        assert len(storage.query_range(since=BASE_TIME + timedelta(seconds=1))) == 2
        assert len(storage.query_range(until=BASE_TIME)) == 1

    def test_out_of_order_append_is_returned_chronologically(self, storage):
        storage.append(make_sample(20, cpu=3.0))
        storage.append(make_sample(0, cpu=1.0))
        storage.append(make_sample(10, cpu=2.0))

        assert [r.cpu for r in storage.query_range()] == [1.0, 2.0, 3.0]
        assert [r.cpu for r in storage.latest(2)] == [2.0, 3.0]

    def test_latest(self, storage):
        for i in range(5):
            storage.append(make_sample(i, cpu=float(i)))

        assert [r.cpu for r in storage.latest(3)] == [2.0, 3.0, 4.0]
        assert storage.latest(0) == []
        assert len(storage.latest(100)) == 5

    def test_optional_fields_round_trip(self, storage):
        storage.append(make_sample(0, gpu=None, gpu_temp=None, gpu_memory=None))
        record = storage.latest(1)[0]

        assert record.id == 1
        assert record.gpu is None
        assert record.gpu_temp is None
        assert record.gpu_memory is None
        assert record.timestamp == BASE_TIME

    def test_delete_before_includes_cutoff(self, storage):
        for i in range(5):
            storage.append(make_sample(i))

        deleted = storage.delete_before(BASE_TIME + timedelta(seconds=2))

        assert deleted == 3
        assert [r.timestamp for r in storage.query_range()] == [
            BASE_TIME + timedelta(seconds=3),
            BASE_TIME + timedelta(seconds=4),
        ]

    def test_delete_before_nothing_expired(self, storage):
        storage.append(make_sample(10))
        assert storage.delete_before(BASE_TIME) == 0
        assert storage.count() == 1

    def test_delete_oldest(self, storage):
        for i in range(5):
            storage.append(make_sample(i, cpu=float(i)))

        assert storage.delete_oldest(2) == 2
        assert [r.cpu for r in storage.query_range()] == [2.0, 3.0, 4.0]
        assert storage.delete_oldest(10) == 3
        assert storage.count() == 0

    def test_ids_not_reused_after_delete(self, storage):
        storage.append(make_sample(0))
        storage.append(make_sample(1))
        storage.delete_oldest(2)

        assert storage.append(make_sample(2)) == 3

    def test_stats(self, storage):
        storage.append(make_sample(0, cpu=10.0, memory=40.0, gpu=None))
        storage.append(make_sample(60, cpu=30.0, memory=60.0, gpu=50.0))

        stats = storage.stats()

        assert stats.count == 2
        assert stats.oldest == "2024-01-01T12:00:00.000Z"
        assert stats.newest == "2024-01-01T12:01:00.000Z"
        assert stats.avg_cpu == pytest.approx(20.0)
        assert stats.avg_memory == pytest.approx(50.0)
        assert stats.avg_gpu == pytest.approx(50.0)

    def test_stats_empty(self, storage):
        stats = storage.stats()

        assert stats.count == 0
        assert stats.oldest is None
        assert stats.avg_gpu is None

    def test_clear(self, storage):
        storage.append(make_sample(0))
        storage.clear()
        assert storage.count() == 0


@pytest.mark.unit
class TestParquetSampleStorage:
    """Test cases specific to the Parquet backend."""

    def test_open_missing_file_writes_nothing(self, temp_dir):
        path = temp_dir / "nested" / "metrics.parquet"
        storage = ParquetSampleStorage(path)
        storage.open()

        assert storage.count() == 0
        assert storage.query_range() == []
        assert not path.parent.exists()

    def test_first_write_creates_file(self, temp_dir):
        path = temp_dir / "nested" / "metrics.parquet"
        storage = ParquetSampleStorage(path)
        storage.open()
        storage.append(make_sample(0))

        assert pl.read_parquet(path).height == 1

    def test_records_survive_reopen(self, temp_dir):
        path = temp_dir / "metrics.parquet"
        storage = ParquetSampleStorage(path, compression="zstd")
        storage.open()
        storage.append(make_sample(0, cpu=11.0))
        storage.append(make_sample(1, cpu=22.0))
        storage.close()

        reopened = ParquetSampleStorage(path)
        reopened.open()

        assert [r.cpu for r in reopened.query_range()] == [11.0, 22.0]
        # Ids continue after the highest persisted id.
        assert reopened.append(make_sample(2)) == 3

    def test_file_schema(self, temp_dir):
        path = temp_dir / "metrics.parquet"
        storage = ParquetSampleStorage(path)
        storage.open()
        storage.append(make_sample(0))

        df = pl.read_parquet(path)
        assert df.columns == list(SAMPLE_SCHEMA)
        assert df.schema["timestamp"] == pl.Datetime("us", "UTC")

    def test_no_temp_file_left_behind(self, temp_dir):
        storage = ParquetSampleStorage(temp_dir / "metrics.parquet")
        storage.open()
        storage.append(make_sample(0))

        assert sorted(p.name for p in temp_dir.iterdir()) == ["metrics.parquet"]

    def test_failed_write_keeps_previous_state(self, temp_dir, monkeypatch):
        storage = ParquetSampleStorage(temp_dir / "metrics.parquet")
        storage.open()
        storage.append(make_sample(0))

        def broken_flush():
            raise OSError("disk full")

        monkeypatch.setattr(storage, "_flush", broken_flush)
        with pytest.raises(OSError):
            storage.append(make_sample(1))

        assert storage.count() == 1


@pytest.mark.unit
class TestStorageFactory:
    """Test cases for storage factory."""

    def test_create_parquet_storage(self, temp_dir):
        storage = create_storage(StorageConfig(path=temp_dir / "m.parquet", compression="gzip"))

        assert isinstance(storage, ParquetSampleStorage)
        assert storage.compression == "gzip"
        assert storage.path == temp_dir / "m.parquet"

    def test_create_memory_storage(self):
        assert isinstance(create_storage(StorageConfig(format="memory")), MemorySampleStorage)

    def test_create_storage_unsupported_format(self):
        with pytest.raises(ValueError) as excinfo:
            create_storage(StorageConfig(format="sqlite"))

        assert "Unsupported storage format" in str(excinfo.value)
