# Shared pytest fixtures
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import pytest

from settlement_enricher.models.config_models import EnricherConfig, StoreConfig
from tests.fakes import FakeStore, payload


@pytest.fixture()
def temp_workdir(tmp_path: Path, monkeypatch) -> Path:
    (tmp_path / "config").mkdir()
    (tmp_path / "data").mkdir()
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("REDIS_URL", raising=False)
    return tmp_path


@pytest.fixture()
def fake_store() -> FakeStore:
    return FakeStore(
        {
            "transferModel_in_T1": payload("H1"),
            "transferModel_out_T2": payload("H2"),
        }
    )


@pytest.fixture()
def store_factory(fake_store: FakeStore):
    """Client factory handing out `fake_store` and recording the configs it saw."""
    seen: list[StoreConfig] = []

    @contextmanager
    def factory(config: StoreConfig) -> Iterator[FakeStore]:
        seen.append(config)
        try:
            yield fake_store
        finally:
            fake_store.close()

    factory.seen = seen  # type: ignore[attr-defined]
    return factory


@pytest.fixture()
def enricher_config(temp_workdir: Path) -> EnricherConfig:
    return EnricherConfig(
        output_directory=str(temp_workdir / "output"),
        error_log_directory=str(temp_workdir / "logs"),
    )


@pytest.fixture()
def settlement_csv() -> str:
    return (
        "Sender DFSP,Receiver DFSP,Transfer ID,Transaction Type,Currency\n"
        "MWK,,,,\n"
        "payerfsp,payeefsp,T1,TRANSFER,MWK\n"
        "payerfsp,payeefsp,T2,PAYMENT,MWK\n"
        "TZS,,,,\n"
        "bankone,payeefsp,T3,TRANSFER,TZS\n"
    )


@pytest.fixture()
def settlement_file(temp_workdir: Path, settlement_csv: str) -> Path:
    path = temp_workdir / "data" / "settlement.csv"
    path.write_text(settlement_csv, encoding="utf-8")
    return path


@pytest.fixture()
def sample_config_yaml() -> str:
    return """redis:
  url: redis://cache.internal:6380/2
  connect_timeout: 5
key_prefix: transferModel
output_directory: ./output
error_log_directory: ./logs
progress_interval: 5
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "enricher.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg
