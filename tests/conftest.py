#
# Pytest Fixtures
#

# Third-party ----------------------------------------------------------------------------------------------------------
import pytest
import pathlib
from dataclasses import dataclass

# Local ----------------------------------------------------------------------------------------------------------------
from infounits.units import Bits, Bytes


@dataclass(frozen=True)
class ServerConfig:
    bandwidth: Bits
    cache: Bytes = Bytes(0)
    chunk: Bytes = Bytes(0)


CONFIG_TEXT = """\
{
    "bandwidth": "1Gb",
    "cache": "256MB",
    "chunk": "1.5KB",
    "comment": "edge node"
}
"""

# Fixtures -------------------------------------------------------------------------------------------------------------

@pytest.fixture
def server_config_cls() -> type:
    """Dataclass with unit fields used as a decode target."""
    return ServerConfig


@pytest.fixture
def config_file(tmp_path: pathlib.Path) -> pathlib.Path:
    """JSON config file holding unit values in text form."""
    p = tmp_path / "config.json"
    p.write_text(CONFIG_TEXT, encoding="utf-8")
    return p
