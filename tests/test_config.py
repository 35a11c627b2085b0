from chartdesk.config import get_settings


def test_defaults(monkeypatch):
    for name in ("CHARTDESK_LOG_LEVEL", "CHARTDESK_CHART_WIDTH", "CHARTDESK_CHART_HEIGHT", "CHARTDESK_MAX_UPLOAD_BYTES"):
        monkeypatch.delenv(name, raising=False)
    s = get_settings()
    assert (s.log_level, s.chart_width, s.chart_height, s.max_upload_bytes) == ("INFO", 900, 500, 5_000_000)


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("CHARTDESK_LOG_LEVEL", "debug")
    monkeypatch.setenv("CHARTDESK_CHART_WIDTH", "1200")
    s = get_settings()
    assert s.log_level == "DEBUG"
    assert s.chart_width == 1200
