"""
时区工具单元测试
覆盖：UTC 时间获取、时区补全、ISO 格式化、毫秒时间戳
"""

from datetime import datetime, timezone, timedelta

from utils.timezone import (
    get_utc_time,
    ensure_utc,
    to_iso,
    to_timestamp_ms,
)


class TestGetUtcTime:
    """获取 UTC 时间测试"""

    def test_has_timezone_info(self):
        """测试包含时区信息"""
        now = get_utc_time()
        assert now.tzinfo is not None
        assert now.utcoffset() == timedelta(0)

    def test_close_to_current_time(self):
        """测试返回时间接近当前时间"""
        diff = abs((get_utc_time() - datetime.now(timezone.utc)).total_seconds())
        assert diff < 2  # 2 秒内误差


class TestEnsureUtc:
    """时区补全测试"""

    def test_none_input(self):
        assert ensure_utc(None) is None

    def test_naive_datetime(self):
        """无时区信息的时间按 UTC 处理，不做转换"""
        result = ensure_utc(datetime(2024, 1, 1, 12, 0, 0))

        assert result.tzinfo is not None
        assert result.hour == 12

    def test_other_timezone(self):
        """其他时区转换为 UTC"""
        beijing = timezone(timedelta(hours=8))
        result = ensure_utc(datetime(2024, 1, 1, 8, 0, 0, tzinfo=beijing))

        assert result.utcoffset() == timedelta(0)
        assert result.hour == 0


class TestFormatting:
    """格式化测试"""

    def test_to_iso(self):
        dt = datetime(2024, 5, 1, 10, 30, 0, tzinfo=timezone.utc)
        assert to_iso(dt) == "2024-05-01T10:30:00+00:00"

    def test_to_iso_naive(self):
        assert to_iso(datetime(2024, 5, 1, 10, 30, 0)) == "2024-05-01T10:30:00+00:00"

    def test_to_iso_none(self):
        assert to_iso(None) is None

    def test_to_timestamp_ms(self):
        dt = datetime(1970, 1, 1, 0, 0, 1, 500000, tzinfo=timezone.utc)
        assert to_timestamp_ms(dt) == 1500
