import pytest

from symbolic_differentiation import LogLevel, configure_logging


@pytest.fixture(autouse=True)
def quiet_logging():
    configure_logging(LogLevel.SILENT)
    yield
    configure_logging(LogLevel.MINIMAL)
