"""Tests for request classification."""

import unittest

from smartroute.tools.base.tool_context import (
    ContextAnalyzer,
    IntentPredictor,
    TaskComplexity,
    TaskDomain,
    TaskUrgency,
    ToolContext,
    UserIntent,
)


class TestContextAnalyzer(unittest.TestCase):

    def setUp(self):
        self.analyzer = ContextAnalyzer()

    def test_complexity_thresholds(self):
        self.assertEqual(self.analyzer.analyze_complexity("x" * 200), TaskComplexity.LOW)
        self.assertEqual(self.analyzer.analyze_complexity("x" * 201), TaskComplexity.MEDIUM)
        self.assertEqual(self.analyzer.analyze_complexity("x" * 1000), TaskComplexity.MEDIUM)
        self.assertEqual(self.analyzer.analyze_complexity("x" * 1001), TaskComplexity.HIGH)

    def test_domain_first_match_wins(self):
        self.assertEqual(self.analyzer.analyze_domain("please debug this function"), TaskDomain.PROGRAMMING)
        # "write" is creative, but "code" comes first in the order
        self.assertEqual(self.analyzer.analyze_domain("Write some CODE"), TaskDomain.PROGRAMMING)
        self.assertEqual(self.analyzer.analyze_domain("search for papers"), TaskDomain.RESEARCH)
        self.assertEqual(self.analyzer.analyze_domain("design a poster"), TaskDomain.CREATIVE)
        self.assertEqual(self.analyzer.analyze_domain("hello there"), TaskDomain.GENERAL)

    def test_urgency(self):
        self.assertEqual(self.analyzer.analyze_urgency("I need this ASAP"), TaskUrgency.HIGH)
        self.assertEqual(self.analyzer.analyze_urgency("high priority please"), TaskUrgency.MEDIUM)
        self.assertEqual(self.analyzer.analyze_urgency("whenever"), TaskUrgency.LOW)

    def test_resource_requirements(self):
        requirements = self.analyzer.analyze_resource_requirements("search the web for this document")
        self.assertTrue(requirements.network_access)
        self.assertTrue(requirements.file_access)
        self.assertFalse(requirements.compute_intensive)
        self.assertFalse(requirements.memory_intensive)

        long_text = self.analyzer.analyze_resource_requirements("y" * 1001)
        self.assertTrue(long_text.compute_intensive)
        self.assertTrue(long_text.memory_intensive)

    def test_analyze_context_is_deterministic(self):
        context = ToolContext(input="Quickly find the bug in this function")
        first = self.analyzer.analyze_context(context)
        second = self.analyzer.analyze_context(context)

        self.assertEqual(first, second)
        self.assertEqual(first.domain, TaskDomain.PROGRAMMING)
        self.assertEqual(first.urgency, TaskUrgency.HIGH)
        self.assertEqual(first.complexity, TaskComplexity.LOW)


def test_intent_keywords_in_order():
    predictor = IntentPredictor()

    assert predictor.predict_intent("please debug this function") == UserIntent.PROBLEM_SOLVING
    assert predictor.predict_intent("Analyze and fix the loop") == UserIntent.ANALYSIS
    assert predictor.predict_intent("generate a summary") == UserIntent.CREATION
    assert predictor.predict_intent("research quantum dots") == UserIntent.INFORMATION
    assert predictor.predict_intent("optimize the query") == UserIntent.OPTIMIZATION
    assert predictor.predict_intent("hello") == UserIntent.ASSISTANCE
