"""
Tests for the quantization matrix and variant selection
"""

import pytest

from llm_sizer.errors import UnknownQuantizationError
from llm_sizer.matrix import (
    build_matrix, params_label, runnable_variants, select_best, unique_param_sizes
)
from llm_sizer.models import ModelVariant
from llm_sizer.platforms import PlatformClass
from llm_sizer.quantization import ALL_QUANT_KEYS, QUANT_KEYS
from llm_sizer.verdict import Verdict


class TestBuildMatrix:
    """Test build_matrix"""

    def test_shape_and_order(self):
        """n distinct sizes x k quants, ascending sizes"""
        rows = build_matrix([7, 1, 7, 3], QUANT_KEYS, ram_gb=16)

        assert [row.params_b for row in rows] == [1, 3, 7]
        for row in rows:
            assert list(row.cells) == list(QUANT_KEYS)

    def test_all_quants(self):
        """Test every catalog column"""
        rows = build_matrix([0.5, 70], ALL_QUANT_KEYS, ram_gb=64)
        assert len(rows) == 2
        assert all(len(row.cells) == len(ALL_QUANT_KEYS) for row in rows)

    def test_cells_grow_with_quant(self):
        """Memory increases left to right across the default columns"""
        for row in build_matrix([1, 7, 70], ram_gb=32):
            totals = [cell.total_memory_gb for cell in row.cells.values()]
            assert all(a < b for a, b in zip(totals, totals[1:]))

    def test_seven_b_on_sixteen_gb(self):
        """Test verdicts across a 7B row with 9.8 GB usable"""
        row = build_matrix([7], ram_gb=16)[0]

        assert row.cells["Q4_K_M"].verdict == Verdict.COMFORTABLE
        assert row.cells["Q5_K_M"].verdict == Verdict.COMFORTABLE
        assert row.cells["Q8_0"].verdict == Verdict.MAYBE
        assert row.cells["F16"].verdict == Verdict.NO
        assert row.cells["Q4_K_M"].size_gb == pytest.approx(3.85)
        assert row.cells["Q4_K_M"].total_memory_gb == pytest.approx(7 * 0.55 * 1.05 + 0.32 + 1.48)

    def test_unknown_ram(self):
        """Every cell is unknown without RAM"""
        rows = build_matrix([1, 7], ram_gb=None)
        for row in rows:
            for cell in row.cells.values():
                assert cell.verdict == Verdict.UNKNOWN
                assert cell.headroom_gb is None
                assert cell.total_memory_gb > 0

    def test_context_changes_kv(self):
        """A longer context makes every cell heavier"""
        short = build_matrix([8], ram_gb=16, context=2048)[0]
        long = build_matrix([8], ram_gb=16, context=32768)[0]
        for key in QUANT_KEYS:
            assert long.cells[key].total_memory_gb > short.cells[key].total_memory_gb

    def test_platform_changes_headroom(self):
        """Linux leaves more headroom than Windows"""
        linux = build_matrix([7], ram_gb=16, platform=PlatformClass.LINUX)[0]
        windows = build_matrix([7], ram_gb=16, platform=PlatformClass.WINDOWS)[0]
        assert linux.cells["Q4_K_M"].headroom_gb > windows.cells["Q4_K_M"].headroom_gb

    def test_lowercase_keys_normalized(self):
        """Test quant keys are canonicalised"""
        row = build_matrix([7], ["q4_k_m"], ram_gb=16)[0]
        assert list(row.cells) == ["Q4_K_M"]

    def test_duplicate_keys_merged(self):
        """Keys naming the same quant give one column, in first-seen order"""
        row = build_matrix([7], ["Q4_K_M", "q4_k_m", "F16"], ram_gb=16)[0]
        assert list(row.cells) == ["Q4_K_M", "F16"]

    def test_invalid_sizes_count_as_zero(self):
        """Negative and non-finite sizes become a single 0B row"""
        rows = build_matrix([-4, 0, float("nan"), 7], ram_gb=16)

        assert [row.params_b for row in rows] == [0, 7]
        zero = rows[0]
        assert zero.label == "0M"
        for cell in zero.cells.values():
            assert cell.size_gb == 0
            assert cell.total_memory_gb >= 0

    def test_unknown_quant(self):
        """Test unknown columns raise"""
        with pytest.raises(UnknownQuantizationError):
            build_matrix([7], ["Q4_K_M", "Q11"], ram_gb=16)

    def test_empty(self):
        """No sizes, no rows"""
        assert build_matrix([], ram_gb=16) == []

    def test_labels(self):
        """Test row labels"""
        assert params_label(0.5) == "500M"
        assert params_label(7) == "7B"
        assert params_label(1.5) == "1.5B"
        assert [row.label for row in build_matrix([0.5, 7])] == ["500M", "7B"]


class TestSelectBest:
    """Test select_best"""

    def test_largest_comfortable(self, llama_variants):
        """16 GB picks the 8B"""
        variant, result = select_best(llama_variants, 16)
        assert variant.tag == "8b"
        assert result.verdict == Verdict.COMFORTABLE

    def test_prefers_comfortable_over_larger_maybe(self, llama_variants):
        """12 GB: 8B is only a maybe, so the comfortable 3B wins"""
        variant, result = select_best(llama_variants, 12)
        assert variant.tag == "3b"
        assert result.verdict == Verdict.COMFORTABLE

    def test_falls_back_to_maybe(self, llama_variants):
        """With no comfortable option the largest plausible one wins"""
        variant, result = select_best(llama_variants[2:], 12)
        assert variant.tag == "8b"
        assert result.verdict == Verdict.MAYBE

    def test_none_without_ram(self, llama_variants):
        """Unknown RAM gives no recommendation"""
        assert select_best(llama_variants, None) is None

    def test_none_when_nothing_fits(self, llama_variants):
        """Tiny machines get no recommendation"""
        assert select_best(llama_variants, 4) is None

    def test_none_for_empty_list(self):
        """Test empty input"""
        assert select_best([], 16) is None

    def test_tie_break_by_tag(self):
        """Equal sizes resolve by tag regardless of input order"""
        a = ModelVariant(params_b=7, size_gb=4.1, quant="Q4_K_M", context=8192, tag="7b-a")
        b = ModelVariant(params_b=7, size_gb=3.8, quant="Q4_K_M", context=8192, tag="7b-b")

        assert select_best([b, a], 32)[0] is a
        assert select_best([a, b], 32)[0] is a

    def test_deterministic(self, llama_variants):
        """Repeated calls agree"""
        results = {select_best(llama_variants, 24)[0].tag for _ in range(5)}
        assert len(results) == 1


class TestRunnableVariants:
    """Test runnable_variants"""

    def test_order(self, llama_variants):
        """Best verdict first, then largest first"""
        results = runnable_variants(llama_variants, 12)
        assert [v.tag for v, _ in results] == ["3b", "1b", "8b"]
        assert [r.verdict for _, r in results] == [Verdict.COMFORTABLE, Verdict.COMFORTABLE, Verdict.MAYBE]

    def test_empty_without_ram(self, llama_variants):
        """Unknown RAM gives nothing"""
        assert runnable_variants(llama_variants, None) == []


class TestUniqueParamSizes:
    """Test unique_param_sizes"""

    def test_sorted_distinct(self, llama_variants):
        """Test duplicates removed and sorted"""
        extra = ModelVariant(params_b=8, size_gb=8.5, quant="Q8_0", context=8192, tag="8b-q8")
        assert unique_param_sizes(llama_variants + [extra]) == [1, 3, 8, 70]


if __name__ == "__main__":
    pytest.main([__file__])
