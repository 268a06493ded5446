import logging

from exo import metrics
from exo.config import AggregatedConfig
from exo.events import on
from exo.runmode import RunMode
from exo.runtime import ExoRuntime


def test_default_is_live():
    rm = RunMode()
    assert rm.get() == "live"
    assert rm.is_live_mode()
    assert not rm.is_dev_mode()


def test_strict_rejects_unknown_and_keeps_value(caplog):
    events = []
    on(lambda n, p: events.append((n, p)))
    rm = RunMode(strict=True)
    rm.set("stage")
    with caplog.at_level(logging.WARNING, logger="exo.runmode"):
        assert rm.set("bogus") is False
    assert rm.get() == "stage"
    assert rm.is_stage_mode()
    assert "bogus" in caplog.text
    assert [p["value"] for n, p in events if n == "RunModeRejected"] == ["bogus"]
    assert metrics.get_counter("runmode_rejected_total", {"value": "bogus"}) == 1


def test_strict_is_case_sensitive():
    rm = RunMode(strict=True)
    assert rm.set("DEV") is False
    assert rm.get() == "live"


def test_non_strict_accepts_verbatim_lowercased(caplog):
    rm = RunMode(strict=False)
    with caplog.at_level(logging.WARNING, logger="exo.runmode"):
        assert rm.set("bogus") is True
    assert rm.get() == "bogus"
    assert caplog.records == []
    rm.set("TEST")
    assert rm.get() == "test"
    assert rm.is_test_mode()


def test_runtime_bootstrap_from_config_then_env(monkeypatch):
    cfg = AggregatedConfig.model_validate({"runtime": {"runmode": "stage"}})
    assert ExoRuntime(cfg).get_runmode() == "stage"
    monkeypatch.setenv("EXO_RUNMODE", "dev")
    rt = ExoRuntime(cfg)
    assert rt.get_runmode() == "dev"
    assert rt.is_dev_mode()


def test_runtime_strict_flag_from_debug(monkeypatch):
    monkeypatch.setenv("EXO_RUNMODE", "qa")
    strict = ExoRuntime(AggregatedConfig.model_validate({"runtime": {"debug": True}}))
    assert strict.get_runmode() == "live"
    loose = ExoRuntime(AggregatedConfig())
    assert loose.get_runmode() == "qa"
    assert loose.set_runmode("dev") is True
    assert loose.is_dev_mode()
