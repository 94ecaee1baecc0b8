"""Tests for compiler settings."""

import pydantic
import pytest

from apiplan.settings import CompilerSettings


def test_defaults(settings: CompilerSettings) -> None:
    """Defaults match the documents the compiler has always produced."""
    assert settings.model_dump() == {
        'jmeter_version': '5.2.1',
        'jmx_version': '1.2',
        'jmx_properties': '5.0',
        'content_encoding': 'UTF-8',
        'num_threads': 1,
        'ramp_time': 1,
        'loops': 1,
        'locale': 'en',
    }


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch,
                               settings: CompilerSettings) -> None:  # noqa: ARG001
    """Settings are read from `APIPLAN_` environment variables."""
    monkeypatch.setenv('APIPLAN_JMETER_VERSION', '5.6.3')
    monkeypatch.setenv('APIPLAN_RAMP_TIME', '30')
    monkeypatch.setenv('APIPLAN_LOCALE', 'zh_CN')
    monkeypatch.setenv('UNRELATED', 'ignored')

    resolved = CompilerSettings()

    assert resolved.jmeter_version == '5.6.3'
    assert resolved.ramp_time == 30
    assert resolved.locale == 'zh_CN'


def test_settings_are_frozen(settings: CompilerSettings) -> None:
    """Resolved settings can not be modified."""
    with pytest.raises(pydantic.ValidationError, match='frozen'):
        settings.num_threads = 2


@pytest.mark.parametrize('options', (
    pytest.param({'num_threads': 0}, id='no threads'),
    pytest.param({'ramp_time': -1}, id='negative ramp-up'),
))
def test_settings_bounds(options: dict, settings: CompilerSettings) -> None:  # noqa: ARG001
    """Thread group sizing is bounded."""
    with pytest.raises(pydantic.ValidationError):
        CompilerSettings(**options)
