"""Core orchestration for the prompt studio.

- **PromptEntity / GalleryItem**: data model (models.py)
- **Gateways**: remote generation boundary and its registry (gateway.py, adapters/)
- **classify_error**: closed failure taxonomy (errors.py)
- **EntityStore**: recent / saved / gallery collections with persistence (store.py)
- **VisualizationTracker**: per-id async visualization state (tracker.py)
- **BulkOrchestrator**: sequential render-all (bulk.py)
- **EditCoordinator**: globally exclusive image refinement (editing.py)
- **StudioSession**: wires the above for one user (session.py)

Usage Example
-------------
    from larchviz.core import create_session
    from larchviz.core.models import GenerationRequest

    session = create_session()
    await session.generate(GenerationRequest(concept="a flood-tolerant schoolyard"))
    await session.render_all("recent")
"""

from larchviz.core.bulk import BulkOrchestrator
from larchviz.core.config import LarchvizConfig, config
from larchviz.core.editing import EditCoordinator
from larchviz.core.errors import ErrorKind, ServiceError, classify_error
from larchviz.core.models import GalleryItem, GenerationRequest, PromptEntity
from larchviz.core.session import StudioSession, create_session
from larchviz.core.state import OrchestratorState, VisualizationState
from larchviz.core.store import EntityStore
from larchviz.core.tracker import VisualizationTracker

__all__ = [
    "BulkOrchestrator",
    "EditCoordinator",
    "EntityStore",
    "ErrorKind",
    "GalleryItem",
    "GenerationRequest",
    "LarchvizConfig",
    "OrchestratorState",
    "PromptEntity",
    "ServiceError",
    "StudioSession",
    "VisualizationState",
    "VisualizationTracker",
    "classify_error",
    "config",
    "create_session",
]
