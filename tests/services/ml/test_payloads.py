"""
Unit tests for prior verification payload mapping
"""

import pytest

from triplecheck.services.ml.payloads import (
    CombinedAnalysisPayload,
    DescriptionAnalysisPayload,
    DirectScoresPayload,
    ImageAnalysisPayload,
    LegacyOverallScoreOnly,
    document_scores_for,
    parse_verification_payload,
)


class TestParseVerificationPayload:
    """Tests for variant selection."""

    @pytest.mark.parametrize("data,variant", [
        ({"overallScore": 72, "imageAnalysis": {}, "descriptionAnalysis": {}}, CombinedAnalysisPayload),
        ({"imageAnalysis": {"authenticityScore": 80}}, ImageAnalysisPayload),
        ({"descriptionAnalysis": {"accuracyScore": 70}}, DescriptionAnalysisPayload),
        ({"authenticity": 80, "completeness": 70}, DirectScoresPayload),
        ({"overallScore": 72}, LegacyOverallScoreOnly),
    ])
    def test_variants(self, data, variant):
        assert isinstance(parse_verification_payload(data), variant)

    @pytest.mark.parametrize("data", [None, {}, {"verificationId": "abc", "overallStatus": "verified"}])
    def test_unrecognized(self, data):
        assert parse_verification_payload(data) is None

    def test_unreadable_values(self):
        assert parse_verification_payload({"overallScore": "excellent"}) is None


class TestDocumentScores:
    """Tests for document_scores_for()."""

    def test_no_payload_is_neutral(self):
        scores = document_scores_for(None)

        assert (scores.authenticity, scores.completeness, scores.consistency) == (50, 50, 50)

    def test_combined(self):
        scores = document_scores_for({
            "overallScore": 72,
            "imageAnalysis": {"authenticityScore": 80},
            "descriptionAnalysis": {"accuracyScore": 70, "coherenceScore": 65},
        })

        assert (scores.authenticity, scores.completeness, scores.consistency) == (80, 70, 65)

    def test_combined_missing_sub_scores_use_overall(self):
        scores = document_scores_for({"overallScore": 60, "imageAnalysis": {}, "descriptionAnalysis": {}})

        assert scores.authenticity == pytest.approx(72)
        assert (scores.completeness, scores.consistency) == (60, 60)

    def test_legacy_authenticity_capped(self):
        """1.2 x 90 = 108 is capped at 100."""
        scores = document_scores_for({"overallScore": 90})

        assert (scores.authenticity, scores.completeness, scores.consistency) == (100, 90, 90)

    def test_image_only(self):
        scores = document_scores_for({"overallScore": 40, "imageAnalysis": {"authenticityScore": 30}})

        assert (scores.authenticity, scores.completeness, scores.consistency) == (30, 40, 40)

    def test_description_only_without_overall(self):
        """Overall defaults to 50."""
        scores = document_scores_for({"descriptionAnalysis": {"coherenceScore": 20}})

        assert scores.authenticity == pytest.approx(60)
        assert (scores.completeness, scores.consistency) == (50, 20)

    def test_direct_scores(self):
        scores = document_scores_for({"authenticity": 85, "consistency": 30})

        assert (scores.authenticity, scores.completeness, scores.consistency) == (85, 50, 30)

    def test_out_of_range_clamped(self):
        scores = document_scores_for({"overallScore": -20, "imageAnalysis": {"authenticityScore": 250}})

        assert (scores.authenticity, scores.completeness, scores.consistency) == (100, 0, 0)
