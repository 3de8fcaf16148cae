"""Tests for token and credit estimation."""
import pytest

from devprofile.analyzers.cost import (
    TokenEstimate,
    classify_scale,
    estimate_tokens,
    format_estimate_message,
)
from devprofile.analyzers.models import GitStatistics


class TestClassifyScale:
    @pytest.mark.parametrize("commits,scale", [
        (0, "micro"),
        (10, "micro"),
        (11, "small"),
        (50, "small"),
        (51, "medium"),
        (150, "medium"),
        (151, "large"),
        (500, "large"),
        (501, "enterprise"),
        (600, "enterprise"),
    ])
    def test_thresholds(self, commits, scale):
        assert classify_scale(commits) == scale


class TestEstimateTokens:
    def test_empty_repository(self):
        estimate = estimate_tokens(GitStatistics())
        assert estimate == TokenEstimate(
            estimated_input_tokens=2000,
            estimated_output_tokens=2000,
            estimated_total_tokens=4000,
            estimated_credits=4,
            project_scale="micro",
        )

    def test_weighted_sum(self):
        stats = GitStatistics(total_commits=20)
        estimate = estimate_tokens(
            stats,
            config_files={"package.json": "{}", "Dockerfile": "FROM node"},
            readme="x" * 400,
            file_structure=["a.ts"] * 10,
        )
        # 2000 + 200 + 600 + 100 + 50
        assert estimate.estimated_input_tokens == 2950
        assert estimate.estimated_total_tokens == 4950
        assert estimate.estimated_credits == 5
        assert estimate.project_scale == "small"

    def test_caps(self):
        stats = GitStatistics(total_commits=1000)
        estimate = estimate_tokens(
            stats, readme="x" * 100_000, file_structure=["a.py"] * 1000
        )
        assert estimate.estimated_input_tokens == 2000 + 2000 + 1000 + 500
        assert estimate.project_scale == "enterprise"

    def test_fractional_readme_tokens(self):
        estimate = estimate_tokens(GitStatistics(), readme="abc")
        assert estimate.estimated_input_tokens == 2000.75
        assert estimate.estimated_total_tokens == 4000.75
        assert estimate.estimated_credits == 5

    def test_credits_are_ceiling_of_total(self):
        estimate = estimate_tokens(GitStatistics(total_commits=3), file_structure=["a"] * 7)
        assert estimate.estimated_credits == -(-estimate.estimated_total_tokens // 1000)

    def test_pure(self, sample_stats):
        args = (sample_stats, {"go.mod": "module x"}, "readme", ["a.go"])
        assert estimate_tokens(*args) == estimate_tokens(*args)


class TestEstimateMessage:
    def test_exact_format(self):
        assert format_estimate_message(5, 4950, "small") == (
            "Repository analysis will use approximately 5 credits (~4950 tokens). "
            "Project scale: small."
        )

    def test_message_property(self):
        estimate = estimate_tokens(GitStatistics(total_commits=600))
        assert estimate.message == (
            "Repository analysis will use approximately 6 credits (~6000 tokens). "
            "Project scale: enterprise."
        )

    def test_integral_totals_render_without_decimal(self):
        estimate = estimate_tokens(GitStatistics(), readme="abcd")
        assert "(~4001 tokens)" in estimate.message
