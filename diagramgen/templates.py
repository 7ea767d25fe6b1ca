# File: diagramgen/templates.py
"""
diagramgen - Emitter strategy
===============================
One interface over the two target ecosystems, so the orchestrator never
branches on the target.  Both emitters read the same ``ResolvedModel``.

    emitter = get_emitter("server", config, resolved)
    files = emitter.generate_all()        # relative path → content
    dirs = emitter.directories()          # created before any file
"""

from __future__ import annotations

import abc
import logging
from typing import Dict, List, Type

from diagramgen.flutter import FlutterTemplateGenerator
from diagramgen.models import GenerationConfig, TargetEcosystem
from diagramgen.resolver import ResolvedModel
from diagramgen.spring import SpringTemplateGenerator

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("diagramgen.templates")


class EmitterStrategy(abc.ABC):
    """Produces the complete file set for one target ecosystem."""

    target: str = ""

    def __init__(self, config: GenerationConfig, resolved: ResolvedModel) -> None:
        self._config: GenerationConfig = config
        self._resolved: ResolvedModel = resolved

    @abc.abstractmethod
    def directories(self) -> List[str]:
        """Relative directories, parents first."""

    @abc.abstractmethod
    def generate_all(self) -> Dict[str, str]:
        """Relative path → file content."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} target={self.target} entities={len(self._resolved)}>"


class ServerEmitter(EmitterStrategy):
    target = TargetEcosystem.SERVER.value

    def __init__(self, config: GenerationConfig, resolved: ResolvedModel) -> None:
        super().__init__(config, resolved)
        self._generator: SpringTemplateGenerator = SpringTemplateGenerator(config, resolved)

    def directories(self) -> List[str]:
        return self._generator.directories()

    def generate_all(self) -> Dict[str, str]:
        return self._generator.generate_all()


class ClientEmitter(EmitterStrategy):
    target = TargetEcosystem.CLIENT.value

    def __init__(self, config: GenerationConfig, resolved: ResolvedModel) -> None:
        super().__init__(config, resolved)
        self._generator: FlutterTemplateGenerator = FlutterTemplateGenerator(config, resolved)

    def directories(self) -> List[str]:
        return self._generator.directories()

    def generate_all(self) -> Dict[str, str]:
        return self._generator.generate_all()


_EMITTERS: Dict[str, Type[EmitterStrategy]] = {
    ServerEmitter.target: ServerEmitter,
    ClientEmitter.target: ClientEmitter,
}


def get_emitter(
    target: str,
    config: GenerationConfig,
    resolved: ResolvedModel,
) -> EmitterStrategy:
    """
    Emitter for *target* (``"server"`` or ``"client"``).

    Raises:
        ValueError: unknown target.
    """
    key: str = target.value if isinstance(target, TargetEcosystem) else str(target)
    emitter_cls = _EMITTERS.get(key)
    if emitter_cls is None:
        raise ValueError(
            f"Unknown target {target!r}; expected one of {sorted(_EMITTERS)}."
        )
    logger.debug("Selected %s for target %s.", emitter_cls.__name__, key)
    return emitter_cls(config, resolved)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "EmitterStrategy",
    "ServerEmitter",
    "ClientEmitter",
    "get_emitter",
]

logger.debug("diagramgen.templates loaded.")
