"""Tests for heuristic query classification."""

from __future__ import annotations

import pytest

from aicache.cache.classifier import QueryType, classify


class TestClassify:
    """Test cases for classify function."""

    @pytest.mark.parametrize(
        "message",
        [
            "What are today's best sellers?",
            "Show me the latest trends",
            "What is the current exchange rate?",
            "Is the store open now?",
        ],
    )
    def test_time_sensitive(self, message: str) -> None:
        """Test that recency markers win."""
        assert classify(message, "beacon") == QueryType.TIME_SENSITIVE

    @pytest.mark.parametrize(
        "message",
        [
            "Can you review my product listing?",
            "Should I raise prices?",
            "Tell me something useful",
        ],
    )
    def test_personalized_markers(self, message: str) -> None:
        """Test that first-person markers classify as personalized."""
        assert classify(message, "beacon") == QueryType.PERSONALIZED

    def test_personalized_agent(self) -> None:
        """Test that live-data agents are always personalized."""
        assert classify("Explain shipping zones", "shopify-ai") == QueryType.PERSONALIZED

    def test_custom_personalized_agents(self) -> None:
        """Test a caller-supplied set of live-data agents."""
        assert classify("Explain ledgers", "ledger", frozenset({"ledger"})) == QueryType.PERSONALIZED
        assert classify("Explain ledgers", "shopify-ai", frozenset({"ledger"})) == QueryType.KNOWLEDGE

    @pytest.mark.parametrize(
        "message",
        [
            "What is your return policy?",
            "How to write a good headline",
            "Explain inventory turnover",
            "Define gross margin",
        ],
    )
    def test_knowledge(self, message: str) -> None:
        """Test that definitional phrasing classifies as knowledge."""
        assert classify(message, "beacon") == QueryType.KNOWLEDGE

    def test_general(self) -> None:
        """Test the fallback classification."""
        assert classify("Write a tagline for a coffee brand", "flint") == QueryType.GENERAL

    def test_recency_beats_personal(self) -> None:
        """Test priority ordering of the rules."""
        assert classify("What's the status of my order today?", "shopify-ai") == QueryType.TIME_SENSITIVE

    def test_personal_beats_knowledge(self) -> None:
        """Test that personal markers outrank definitional phrasing."""
        assert classify("What is my account balance?", "ledger") == QueryType.PERSONALIZED

    def test_markers_match_whole_words(self) -> None:
        """Test that markers inside other words do not match."""
        assert classify("Do you know anything about enamel?", "pearl") == QueryType.GENERAL

    def test_case_insensitive(self) -> None:
        """Test that classification ignores letter case."""
        assert classify("WHAT IS SEO", "flint") == QueryType.KNOWLEDGE

    def test_query_type_values(self) -> None:
        """Test the string values of the classification."""
        assert {q.value for q in QueryType} == {"general", "personalized", "time_sensitive", "knowledge"}
