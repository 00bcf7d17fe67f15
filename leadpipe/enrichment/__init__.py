"""
Enrichment: classify crawled companies and fill contact details.

- classifier.py: BaseClassifier / OpenAIClassifier / NullClassifier
- contacts.py: name guessing and decision-maker flag
- handler.py: the ENRICHMENT job handler
"""

from .classifier import BaseClassifier, EnrichmentResult, NullClassifier, OpenAIClassifier

__all__ = ["BaseClassifier", "EnrichmentResult", "NullClassifier", "OpenAIClassifier"]
