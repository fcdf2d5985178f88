"""
Pytest configuration and fixtures
"""

import pytest

from llm_sizer.estimator import MemoryEstimator
from llm_sizer.models import ModelVariant


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep config and hardware cache lookups out of the real home directory"""
    monkeypatch.setattr("llm_sizer.config.CONFIG_DIR", tmp_path / ".llm-sizer")
    monkeypatch.setattr("llm_sizer.hardware.CACHE_FILE", tmp_path / ".llm-sizer" / "hardware_cache.json")
    return tmp_path


@pytest.fixture
def estimator():
    """Estimator with default configuration"""
    return MemoryEstimator()


@pytest.fixture
def seven_b():
    """A typical 7B Q4_K_M download"""
    return ModelVariant(params_b=7, size_gb=4.7, quant="Q4_K_M", context=8192, tag="7b")


@pytest.fixture
def llama_variants():
    """Variants shaped like the llama3.x catalog entries"""
    return [
        ModelVariant(params_b=1, size_gb=1.3, quant="Q4_K_M", context=131072, tag="1b"),
        ModelVariant(params_b=3, size_gb=2.0, quant="Q4_K_M", context=131072, tag="3b"),
        ModelVariant(params_b=8, size_gb=4.7, quant="Q4_K_M", context=131072, tag="8b", is_default=True),
        ModelVariant(params_b=70, size_gb=40, quant="Q4_K_M", context=131072, tag="70b"),
    ]
