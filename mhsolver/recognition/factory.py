"""
Letter Classifier Factory

Factory for creating glyph classifier instances.
"""

import importlib
from pathlib import Path
from typing import Dict, Type, Union

from .base import LetterClassifier


# Registry of available classifiers
_CLASSIFIER_REGISTRY: Dict[str, Union[str, Type[LetterClassifier]]] = {
    "heuristic": "heuristic.HeuristicClassifier",
    "template": "template.TemplateClassifier",
}

# Cache for loaded classifier classes
_CLASSIFIER_CACHE: Dict[str, Type[LetterClassifier]] = {}


def _load_classifier_class(strategy: str) -> Type[LetterClassifier]:
    """Lazily load a classifier class by strategy name."""
    if strategy in _CLASSIFIER_CACHE:
        return _CLASSIFIER_CACHE[strategy]

    entry = _CLASSIFIER_REGISTRY[strategy]
    if isinstance(entry, str):
        module_name, class_name = entry.rsplit(".", 1)
        module = importlib.import_module(f".{module_name}", package=__package__)
        classifier_class = getattr(module, class_name)
    else:
        classifier_class = entry

    _CLASSIFIER_CACHE[strategy] = classifier_class
    return classifier_class


def create_classifier(strategy: str = "heuristic", **config) -> LetterClassifier:
    """
    Create a glyph classifier by strategy name.

    Args:
        strategy: Strategy identifier. Available types:
            - "heuristic" (default): decision tree over signature features
            - "template": reference mask overlap
        **config: Strategy-specific configuration options:
            For "template":
                - template_dir: Path to glyph templates
                - templates: Preloaded GlyphTemplates

    Returns:
        Configured LetterClassifier instance

    Raises:
        ValueError: If strategy is not recognized

    Example:
        classifier = create_classifier("template", template_dir="./assets/templates")
        result = classifier.classify(cell.pixels, signature)
    """
    if strategy not in _CLASSIFIER_REGISTRY:
        available = ", ".join(_CLASSIFIER_REGISTRY.keys())
        raise ValueError(f"Unknown classifier strategy: {strategy}. Available: {available}")

    classifier_class = _load_classifier_class(strategy)

    if strategy == "template":
        template_dir = config.pop("template_dir", None)
        if template_dir is not None:
            template_dir = Path(template_dir)
        templates = config.pop("templates", None)
        classifier = classifier_class(template_dir=template_dir, templates=templates)
    else:
        config.pop("template_dir", None)
        config.pop("templates", None)
        classifier = classifier_class()

    # Apply remaining config
    if config:
        classifier.configure(**config)

    return classifier


def register_classifier(name: str, classifier_class: type) -> None:
    """
    Register a custom classifier strategy.

    Args:
        name: Strategy identifier
        classifier_class: LetterClassifier subclass

    Example:
        class MyClassifier(LetterClassifier):
            ...

        register_classifier("custom", MyClassifier)
    """
    if not issubclass(classifier_class, LetterClassifier):
        raise TypeError(f"{classifier_class} must be a subclass of LetterClassifier")
    _CLASSIFIER_REGISTRY[name] = classifier_class
    _CLASSIFIER_CACHE.pop(name, None)


def available_classifiers() -> list[str]:
    """
    List available classifier strategies.

    Returns:
        List of registered strategy names
    """
    return list(_CLASSIFIER_REGISTRY.keys())
