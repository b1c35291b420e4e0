"""Tests for the system metric extractors."""

from pathlib import Path

import pytest
from conftest import write_uptime

from sysinspect.metrics import (
    count_tasks,
    cpu_usage,
    memory_usage,
    parse_cpuinfo,
    parse_loadavg,
    parse_meminfo,
    parse_uptime,
    read_cpuinfo,
    read_hostname,
    read_kernel_version,
    read_loadavg,
    read_memory,
    read_uptime,
    sample_cpu_usage,
)
from sysinspect.models import LoadAverage, MemorySnapshot, UptimeSample, UsageStatus
from sysinspect.procfs import DataUnavailable, ProcFS


class TestUptime:
    """Tests for uptime parsing."""

    def test_parse(self):
        sample = parse_uptime(["3665.42 7000.10"])
        assert sample == UptimeSample(total_seconds=3665.42, idle_seconds=7000.10)

    def test_read(self, procfs: ProcFS):
        assert read_uptime(procfs).total_seconds == 3665.42

    def test_missing_field(self):
        with pytest.raises(DataUnavailable):
            parse_uptime(["3665.42"])

    def test_not_a_number(self):
        with pytest.raises(DataUnavailable):
            parse_uptime(["up 12"])

    def test_empty_stream(self):
        with pytest.raises(DataUnavailable):
            parse_uptime([])

    @pytest.mark.parametrize("line", ["inf 5.0", "3665.42 nan", "infinity -inf"])
    def test_non_finite_values(self, line: str):
        with pytest.raises(DataUnavailable) as exc_info:
            parse_uptime([line])
        assert exc_info.value.reason == "non-finite value"

    def test_missing_file(self, proc_root: Path, procfs: ProcFS):
        (proc_root / "uptime").unlink()
        with pytest.raises(DataUnavailable) as exc_info:
            read_uptime(procfs)
        assert exc_info.value.source == "uptime"


class TestCpuUsage:
    """Tests for cpu_usage()."""

    def test_basic_ratio(self):
        reading = cpu_usage(UptimeSample(100.0, 50.0), UptimeSample(110.0, 58.0))
        assert reading.ratio == pytest.approx(0.2)
        assert reading.status is UsageStatus.OK

    def test_zero_elapsed_is_no_data(self):
        reading = cpu_usage(UptimeSample(100.0, 50.0), UptimeSample(100.0, 50.0))
        assert reading.ratio == 0.0
        assert reading.status is UsageStatus.NO_DATA

    def test_clock_going_backwards_is_no_data(self):
        reading = cpu_usage(UptimeSample(100.0, 50.0), UptimeSample(90.0, 50.0))
        assert reading.status is UsageStatus.NO_DATA

    def test_fully_idle(self):
        reading = cpu_usage(UptimeSample(100.0, 50.0), UptimeSample(101.0, 51.0))
        assert reading.ratio == pytest.approx(0.0)

    def test_fully_busy(self):
        reading = cpu_usage(UptimeSample(100.0, 50.0), UptimeSample(101.0, 50.0))
        assert reading.ratio == 1.0
        assert reading.status is UsageStatus.OK

    def test_idle_growth_above_elapsed_is_clamped_to_zero(self):
        """Summed idle time on a multi-core machine exceeds wall time."""
        reading = cpu_usage(UptimeSample(100.0, 400.0), UptimeSample(110.0, 438.0))
        assert reading.ratio == 0.0
        assert reading.status is UsageStatus.CLAMPED

    def test_shrinking_idle_is_clamped_to_one(self):
        reading = cpu_usage(UptimeSample(100.0, 50.0), UptimeSample(110.0, 45.0))
        assert reading.ratio == 1.0
        assert reading.status is UsageStatus.CLAMPED

    def test_normalized_by_cpu_count(self):
        reading = cpu_usage(UptimeSample(100.0, 400.0), UptimeSample(110.0, 420.0), cpu_count=4)
        assert reading.ratio == pytest.approx(0.5)

    def test_cpu_count_below_one_is_ignored(self):
        reading = cpu_usage(UptimeSample(100.0, 50.0), UptimeSample(110.0, 58.0), cpu_count=0)
        assert reading.ratio == pytest.approx(0.2)

    def test_always_within_bounds(self):
        for idle_growth in (0.0, 2.5, 5.0, 9.9, 10.0):
            reading = cpu_usage(UptimeSample(0.0, 0.0), UptimeSample(10.0, idle_growth))
            assert 0.0 <= reading.ratio <= 1.0

    def test_sample_sleeps_between_reads(self, proc_root: Path, procfs: ProcFS):
        slept = []

        def fake_sleep(seconds: float) -> None:
            slept.append(seconds)
            write_uptime(proc_root, 3675.42, 7008.10)

        reading = sample_cpu_usage(procfs, interval=1.0, sleep=fake_sleep)

        assert slept == [1.0]
        assert reading.ratio == pytest.approx(0.2, abs=1e-6)


class TestMemory:
    """Tests for meminfo parsing and memory_usage()."""

    def test_parse(self):
        snapshot = parse_meminfo(["MemTotal:  1000 kB", "MemFree:  300 kB", "Cached:  5 kB"])
        assert snapshot == MemorySnapshot(total_kb=1000.0, free_kb=300.0)

    def test_usage_ratio(self):
        snapshot = parse_meminfo(["MemTotal:  1000 kB", "MemFree:  300 kB"])
        assert memory_usage(snapshot).ratio == pytest.approx(0.7)

    def test_read_from_file(self, procfs: ProcFS):
        snapshot = read_memory(procfs)
        assert snapshot.total_kb == 2000.0
        assert snapshot.free_kb == 500.0
        assert memory_usage(snapshot).ratio == 0.75

    def test_key_whitespace_trimmed(self):
        snapshot = parse_meminfo(["  MemTotal :\t1000 kB", " MemFree\t: 250 kB"])
        assert memory_usage(snapshot).ratio == 0.75

    def test_missing_total_is_no_data(self):
        reading = memory_usage(parse_meminfo(["MemFree:  300 kB"]))
        assert reading.ratio == 0.0
        assert reading.status is UsageStatus.NO_DATA

    def test_free_above_total_is_zero(self):
        reading = memory_usage(MemorySnapshot(total_kb=1000.0, free_kb=1100.0))
        assert reading.ratio == 0.0
        assert reading.status is UsageStatus.CLAMPED

    @pytest.mark.parametrize("amount", ["nan", "inf", "-inf", "Infinity"])
    def test_non_finite_amount_skipped(self, amount: str):
        snapshot = parse_meminfo([f"MemTotal: {amount} kB", "MemFree: 1 kB"])

        assert snapshot.total_kb == 0.0
        assert memory_usage(snapshot).status is UsageStatus.NO_DATA

    def test_non_finite_amount_keeps_earlier_value(self):
        snapshot = parse_meminfo(["MemTotal: 1000 kB", "MemTotal: nan kB", "MemFree: 250 kB"])
        assert memory_usage(snapshot).ratio == 0.75

    def test_malformed_lines_skipped(self):
        snapshot = parse_meminfo(
            ["garbage", "MemTotal:", "MemTotal: lots kB", "MemTotal: 1000 kB", "MemFree: 0 kB"]
        )
        assert snapshot.total_kb == 1000.0
        assert memory_usage(snapshot).ratio == 1.0


class TestCpuInfo:
    """Tests for cpuinfo parsing."""

    def test_read(self, procfs: ProcFS):
        info = read_cpuinfo(procfs)
        assert info.model_name == "Intel(R) Core(TM) i7-8650U CPU @ 1.90GHz"
        assert info.logical_unit_count == 2

    def test_first_model_name_wins(self):
        info = parse_cpuinfo(
            [
                "processor\t: 0",
                "model name\t: First CPU",
                "processor\t: 1",
                "model name\t: Second CPU",
            ]
        )
        assert info.model_name == "First CPU"
        assert info.logical_unit_count == 2

    def test_no_model_name(self):
        info = parse_cpuinfo(["processor\t: 0", "Hardware\t: BCM2835"])
        assert info.model_name == ""
        assert info.logical_unit_count == 1

    def test_model_field_alone_does_not_match(self):
        info = parse_cpuinfo(["model\t\t: 142", "model name\t: Real Name"])
        assert info.model_name == "Real Name"

    def test_empty(self):
        info = parse_cpuinfo([])
        assert info.logical_unit_count == 0


class TestLoadAverage:
    """Tests for loadavg parsing."""

    def test_read(self, procfs: ProcFS):
        assert read_loadavg(procfs) == LoadAverage(0.52, 0.58, 0.59)

    def test_exactly_three_fields(self):
        assert parse_loadavg(["1.00 2.00 3.00"]).fifteen == 3.0

    def test_too_few_fields(self):
        with pytest.raises(DataUnavailable):
            parse_loadavg(["1.00 2.00"])

    def test_malformed(self):
        with pytest.raises(DataUnavailable):
            parse_loadavg(["a b c"])

    def test_non_finite(self):
        with pytest.raises(DataUnavailable):
            parse_loadavg(["0.5 nan 0.5"])


class TestHostIdentity:
    """Tests for hostname, kernel version and task count."""

    def test_hostname(self, procfs: ProcFS):
        assert read_hostname(procfs) == "testhost"

    def test_blank_hostname(self, proc_root: Path, procfs: ProcFS):
        (proc_root / "sys" / "kernel" / "hostname").write_text("  \n")
        with pytest.raises(DataUnavailable):
            read_hostname(procfs)

    def test_kernel_version(self, procfs: ProcFS):
        assert read_kernel_version(procfs) == "6.1.0-test"

    def test_kernel_version_too_short(self, proc_root: Path, procfs: ProcFS):
        (proc_root / "version").write_text("Linux version\n")
        with pytest.raises(DataUnavailable):
            read_kernel_version(procfs)

    def test_count_tasks(self, procfs: ProcFS):
        assert count_tasks(procfs) == 2
