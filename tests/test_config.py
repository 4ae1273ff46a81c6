import pytest

from aggcat_helper.config import DEFAULT_BASE_URL, AggcatConfig, AggcatSettings
from aggcat_helper.errors import InvalidArgumentError


def test_resolve_falls_back_to_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AGGCAT_CUSTOMER_ID", "env-customer")
    monkeypatch.setenv("AGGCAT_BASE_URL", "https://env.test/v1/")
    monkeypatch.setenv("AGGCAT_TIMEOUT", "5")
    config = AggcatConfig.resolve()
    assert config == AggcatConfig(
        customer_id="env-customer", base_url="https://env.test/v1", timeout=5.0
    )


def test_resolve_overrides_win() -> None:
    settings = AggcatSettings(customer_id="default", base_url="https://default.test", timeout=1)
    config = AggcatConfig.resolve(customer_id="explicit", timeout=9, settings=settings)
    assert config.customer_id == "explicit"
    assert config.base_url == "https://default.test"
    assert config.timeout == 9


def test_resolve_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("AGGCAT_BASE_URL", raising=False)
    monkeypatch.delenv("AGGCAT_TIMEOUT", raising=False)
    config = AggcatConfig.resolve(customer_id="c1")
    assert config.base_url == DEFAULT_BASE_URL


@pytest.mark.parametrize("customer_id", [None, ""])
def test_resolve_requires_customer(
    monkeypatch: pytest.MonkeyPatch, customer_id: str | None
) -> None:
    monkeypatch.delenv("AGGCAT_CUSTOMER_ID", raising=False)
    with pytest.raises(InvalidArgumentError) as exc_info:
        _ = AggcatConfig.resolve(customer_id=customer_id)
    assert exc_info.value.name == "customer_id"
