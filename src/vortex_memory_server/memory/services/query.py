"""
Memory Query Service

Answers a question from the memory document alone. Retrieval is an ordered
list of named rules; each rule looks at the normalized question and emits
zero or more answer lines:

- ReferenceSectionRule: similarity scan over reference key/value sections
- KeywordRule: substring triggers that assemble canned answers
- MemoryScanRule: similarity scan over stored memories

Lines are joined in rule order. When no rule emits anything the caller is
expected to fall back to the external answering service.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..models import MemoryStore, TEXT_FIELD, has_valid_text
from ...deduplication.similarity import RETRIEVAL_THRESHOLD, normalize_text, compare_two_strings

DEFAULT_REFERENCE_SECTIONS = ['acta_nacimiento', 'creador']

DEFAULT_SECTION_LABELS = {
    'acta_nacimiento': 'mi acta de nacimiento',
    'creador': 'los datos de mi creador',
}

CREATOR_TRIGGERS = [
    'quien te creo', 'quién te creó', 'quien te creó', 'quién te creo',
    'quien es tu creador', 'quién es tu creador', 'tu creador',
    'quien te hizo', 'quién te hizo',
]

PET_TRIGGERS = ['mascota']


class RetrievalRule:
    """Base class for retrieval rules."""

    name = 'rule'

    def apply(self, store: MemoryStore, question: str) -> List[str]:
        """Return answer lines for an already-normalized question."""
        raise NotImplementedError


class ReferenceSectionRule(RetrievalRule):
    """Emit reference facts whose value is similar to the question."""

    name = 'reference_sections'

    def __init__(self, sections: Optional[List[str]] = None,
                 threshold: float = RETRIEVAL_THRESHOLD,
                 labels: Optional[Dict[str, str]] = None):
        self.sections = sections if sections is not None else list(DEFAULT_REFERENCE_SECTIONS)
        self.threshold = threshold
        self.labels = dict(DEFAULT_SECTION_LABELS)
        self.labels.update(labels or {})

    def apply(self, store: MemoryStore, question: str) -> List[str]:
        lines = []
        for section_name, section in store.reference_sections(self.sections).items():
            label = self.labels.get(section_name, section_name.replace('_', ' '))
            for key, value in section.items():
                if not isinstance(value, str):
                    continue
                if compare_two_strings(normalize_text(value), question) >= self.threshold:
                    lines.append(f"Según {label}, {key.replace('_', ' ')}: {value}")
        return lines


class KeywordRule(RetrievalRule):
    """Emit a templated answer when the question contains a trigger phrase."""

    def __init__(self, name: str, triggers: Iterable[str],
                 template: Callable[[MemoryStore], Optional[str]]):
        """Initialize the rule.

        Args:
            name: Rule name used in logs
            triggers: Phrases matched as substrings of the normalized question
            template: Builds the answer from the store; None means no answer
        """
        self.name = name
        self.triggers = [normalize_text(trigger) for trigger in triggers]
        self.template = template

    def apply(self, store: MemoryStore, question: str) -> List[str]:
        if not any(trigger and trigger in question for trigger in self.triggers):
            return []
        answer = self.template(store)
        return [answer] if answer else []


class MemoryScanRule(RetrievalRule):
    """Quote stored memories similar to the question."""

    name = 'memories'

    def __init__(self, threshold: float = RETRIEVAL_THRESHOLD):
        self.threshold = threshold

    def apply(self, store: MemoryStore, question: str) -> List[str]:
        lines = []
        for record in store.memories:
            if not has_valid_text(record):
                continue
            if compare_two_strings(normalize_text(record[TEXT_FIELD]), question) >= self.threshold:
                lines.append(f"Recuerdo que: \"{record[TEXT_FIELD]}\"")
        return lines


def creator_answer(store: MemoryStore) -> Optional[str]:
    creator = store.section('creador')
    real_name = creator.get('nombre_real')
    if not isinstance(real_name, str) or not real_name:
        return None

    answer = f"Fui creado por {real_name}"
    alias = creator.get('alias') or creator.get('apodo')
    if isinstance(alias, str) and alias:
        answer += f", también conocido como {alias}"
    return answer + "."


def _describe_pet(pet: Any) -> Optional[str]:
    if isinstance(pet, str):
        return pet or None
    if isinstance(pet, dict):
        name = pet.get('nombre')
        if not isinstance(name, str) or not name:
            return None
        species = pet.get('especie') or pet.get('tipo')
        return f"{name} ({species})" if isinstance(species, str) and species else name
    return None


def pets_answer(store: MemoryStore) -> Optional[str]:
    creator = store.section('creador')
    pets = creator.get('mascotas')

    if isinstance(pets, dict):
        descriptions = [f"{name} ({species})" if isinstance(species, str) and species else name
                        for name, species in pets.items()]
    elif isinstance(pets, list):
        descriptions = [d for d in (_describe_pet(pet) for pet in pets) if d]
    else:
        descriptions = []

    if not descriptions:
        return None

    owner = creator.get('nombre_real')
    if isinstance(owner, str) and owner:
        return f"Las mascotas de {owner} son: {', '.join(descriptions)}."
    return f"Las mascotas de mi creador son: {', '.join(descriptions)}."


def default_rules(retrieval_config: Optional[Dict[str, Any]] = None) -> List[RetrievalRule]:
    """Build the standard rule list: reference sections, keywords, memories."""
    retrieval_config = retrieval_config or {}
    threshold = retrieval_config.get('similarity_threshold', RETRIEVAL_THRESHOLD)
    return [
        ReferenceSectionRule(
            sections=retrieval_config.get('reference_sections'),
            threshold=threshold,
            labels=retrieval_config.get('section_labels')
        ),
        KeywordRule('creador', CREATOR_TRIGGERS, creator_answer),
        KeywordRule('mascotas', PET_TRIGGERS, pets_answer),
        MemoryScanRule(threshold=threshold),
    ]


class MemoryRetriever:
    """Runs retrieval rules in order and assembles the composite answer."""

    def __init__(self, rules: Optional[List[RetrievalRule]] = None):
        self.rules = rules if rules is not None else default_rules()

    def add_rule(self, rule: RetrievalRule, index: Optional[int] = None) -> None:
        """Register a rule, appended or inserted at ``index``."""
        if index is None:
            self.rules.append(rule)
        else:
            self.rules.insert(index, rule)

    def retrieve(self, store: MemoryStore, question: Any) -> Optional[str]:
        """Answer a question from the store, or None when nothing matches.

        Args:
            store: Loaded memory store; never mutated
            question: Raw question text

        Returns:
            Newline-joined answer lines, or None
        """
        normalized = normalize_text(question)
        if not normalized:
            return None

        lines: List[str] = []
        for rule in self.rules:
            matched = rule.apply(store, normalized)
            if matched:
                logging.info(f"Retrieval rule '{rule.name}' matched {len(matched)} line(s)")
                lines.extend(matched)

        return "\n".join(lines) if lines else None
