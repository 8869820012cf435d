"""Read-only model and persona registries keyed by menu selection."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

DEFAULT_KEY = "1"


@dataclass(frozen=True, slots=True)
class ModelDescriptor:
    key: str
    model_id: str
    description: str
    size: str
    efficiency: str


@dataclass(frozen=True, slots=True)
class Persona:
    key: str
    name: str
    extension: str
    rules: str

    def system_prompt(self) -> str:
        return f"You are Nomad. Specialty: {self.name}. Rule: {self.rules}. Use <thinking> tags."


MODEL_REGISTRY: Mapping[str, ModelDescriptor] = MappingProxyType(
    {
        "1": ModelDescriptor("1", "qwen2.5-coder:3b", "CPU King (Balanced Smart/Fast)", "1.9GB", "Best for 4-8GB RAM"),
        "2": ModelDescriptor("2", "qwen2.5-coder:1.5b", "Ultra-Fast (Real-time Typing)", "900MB", "Best for <4GB RAM"),
        "3": ModelDescriptor("3", "qwen2.5-coder:7b", "High Intelligence (Heavier)", "4.7GB", "Requires 8GB+ RAM"),
        "4": ModelDescriptor("4", "phi3:mini", "Logic Specialist (Microsoft)", "2.3GB", "Excellent Reasoning"),
    }
)

PERSONA_REGISTRY: Mapping[str, Persona] = MappingProxyType(
    {
        "1": Persona("1", "C++", ".cpp", "Competitive Programming standards. Modern C++20."),
        "2": Persona("2", "C", ".c", "Systems level. Memory safety and pointers focus."),
        "3": Persona("3", "Python", ".py", "PEP 8 standards. Idiomatic and clean."),
        "4": Persona("4", "Java", ".java", "Enterprise standards. SOLID principles."),
    }
)


def find_model(choice: Optional[str], registry: Mapping[str, ModelDescriptor] = MODEL_REGISTRY) -> Optional[ModelDescriptor]:
    """Look up a menu key or model id; returns None when nothing matches."""

    token = (choice or "").strip()
    if token in registry:
        return registry[token]
    for descriptor in registry.values():
        if token and token == descriptor.model_id:
            return descriptor
    return None


def select_model(choice: Optional[str], registry: Mapping[str, ModelDescriptor] = MODEL_REGISTRY) -> ModelDescriptor:
    """Resolve a menu key or model id; blank or unknown input picks the default."""

    return find_model(choice, registry) or registry[DEFAULT_KEY]


def find_persona(choice: Optional[str], registry: Mapping[str, Persona] = PERSONA_REGISTRY) -> Optional[Persona]:
    token = (choice or "").strip()
    if token in registry:
        return registry[token]
    lowered = token.lower()
    for persona in registry.values():
        if lowered and lowered == persona.name.lower():
            return persona
    return None


def select_persona(choice: Optional[str], registry: Mapping[str, Persona] = PERSONA_REGISTRY) -> Persona:
    return find_persona(choice, registry) or registry[DEFAULT_KEY]


__all__ = [
    "ModelDescriptor",
    "Persona",
    "MODEL_REGISTRY",
    "PERSONA_REGISTRY",
    "find_model",
    "find_persona",
    "select_model",
    "select_persona",
]
