"""
Tests for model variants and the catalog loader
"""

import json
import logging
import math

import pytest

from llm_sizer.errors import InvalidVariantError
from llm_sizer.models import ModelCatalog, ModelEntry, ModelVariant, sanitize_variant


class TestModelCatalog:
    """Test ModelCatalog class"""

    @pytest.fixture
    def catalog(self):
        return ModelCatalog()

    @pytest.fixture
    def custom_models_file(self, tmp_path):
        models_file = tmp_path / "models.json"
        models_file.write_text(json.dumps({
            "models": {
                "tiny": {
                    "name": "Tiny",
                    "category": "general",
                    "variants": [
                        {"tag": "1b", "params_b": 1, "size_gb": 0.8, "quant": "Q4_K_M", "context": 4096},
                        {"tag": "3b", "params_b": 3, "size_gb": 2.0, "quant": "Q4_K_M", "context": 4096,
                         "is_default": True},
                    ],
                },
                "coder": {
                    "name": "Coder",
                    "category": "code",
                    "variants": [{"tag": "7b", "params_b": 7, "context": 16384}],
                },
            }
        }))
        return models_file

    def test_default_catalog_loads(self, catalog):
        """Test the bundled catalog"""
        assert "llama3.1" in catalog.models
        assert "nomic-embed-text" in catalog.models
        assert all(entry.variants for entry in catalog.models.values())

    def test_bundled_variants_are_valid(self, catalog):
        """Every bundled variant has finite non-negative numbers and a known quant"""
        for entry in catalog.models.values():
            for variant in entry.variants:
                assert sanitize_variant(variant, strict=True) is variant
                assert math.isfinite(variant.size_gb)

    def test_get_model(self, catalog):
        """Test getting model by slug"""
        entry = catalog.get_model("llama3.1")
        assert entry is not None
        assert entry.name == "Llama 3.1"
        assert entry.default_variant.tag == "8b"

        assert catalog.get_model("nonexistent") is None

    def test_get_models_by_category(self, catalog):
        """Test getting models by category"""
        code_models = catalog.get_models_by_category("code")
        assert "qwen2.5-coder" in code_models
        assert all(entry.category == "code" for entry in code_models.values())

        assert catalog.get_models_by_category("nonexistent") == {}

    def test_custom_file(self, custom_models_file):
        """Test loading a catalog from an explicit path"""
        catalog = ModelCatalog(custom_models_file)
        assert set(catalog.models) == {"tiny", "coder"}

        coder = catalog.get_model("coder").variants[0]
        assert coder.size_gb == 0.0
        assert coder.quant == "Q4_K_M"
        assert not coder.is_default

    def test_missing_field_raises(self, tmp_path):
        """Records without params_b are rejected"""
        models_file = tmp_path / "models.json"
        models_file.write_text(json.dumps({
            "models": {"broken": {"variants": [{"tag": "x", "context": 2048}]}}
        }))

        with pytest.raises(InvalidVariantError, match="params_b"):
            ModelCatalog(models_file)

    def test_missing_file_raises(self, tmp_path):
        """Test a missing catalog file is an error"""
        with pytest.raises(FileNotFoundError):
            ModelCatalog(tmp_path / "missing.json")

    def test_invalid_json_raises(self, tmp_path):
        """Test malformed JSON is an error"""
        models_file = tmp_path / "models.json"
        models_file.write_text("{not json")

        with pytest.raises(json.JSONDecodeError):
            ModelCatalog(models_file)


class TestModelEntry:
    """Test ModelEntry helpers"""

    def test_default_variant_flagged(self):
        """The flagged variant is the default"""
        small = ModelVariant(params_b=1, size_gb=0.8, quant="Q4_K_M", context=4096, tag="1b")
        big = ModelVariant(params_b=8, size_gb=4.7, quant="Q4_K_M", context=4096, tag="8b", is_default=True)
        entry = ModelEntry(slug="m", name="M", variants=[small, big])
        assert entry.default_variant is big

    def test_default_variant_falls_back_to_first(self):
        """Without a flag the first variant is the default"""
        small = ModelVariant(params_b=1, size_gb=0.8, quant="Q4_K_M", context=4096, tag="1b")
        entry = ModelEntry(slug="m", name="M", variants=[small])
        assert entry.default_variant is small
        assert ModelEntry(slug="e", name="E", variants=[]).default_variant is None


class TestSanitizeVariant:
    """Test sanitize_variant"""

    def test_valid_variant_unchanged(self, seven_b):
        """Test valid variants pass through untouched"""
        assert sanitize_variant(seven_b) is seven_b

    def test_clamps_with_warning(self, caplog):
        """Invalid fields become zero and are logged"""
        variant = ModelVariant(params_b=-1, size_gb=float("nan"), quant="Q4_K_M", context=4096, tag="weird")

        with caplog.at_level(logging.WARNING):
            clean = sanitize_variant(variant)

        assert clean.params_b == 0.0
        assert clean.size_gb == 0.0
        assert clean.context == 4096
        assert clean.tag == "weird"
        assert "weird" in caplog.text

    def test_strict_raises(self):
        """Strict mode rejects invalid fields"""
        variant = ModelVariant(params_b=7, size_gb=4.1, quant="Q4_K_M", context=-1, tag="neg")

        with pytest.raises(InvalidVariantError) as exc_info:
            sanitize_variant(variant, strict=True)

        assert exc_info.value.tag == "neg"
        assert "context" in str(exc_info.value)


if __name__ == "__main__":
    pytest.main([__file__])
