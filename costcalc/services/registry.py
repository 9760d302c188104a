"""
Model registry.

Maps service codes to cost models. The registry is built once at import
time from the fixed model lists of each category module; resolving an
unregistered code is an error, never a silent zero cost.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from costcalc.domain.errors import UnsupportedServiceError
from costcalc.services.models import analytics, compute, database, integration, management, networking, storage
from costcalc.services.models.common import CostModel
from costcalc.services.normalizer import configuration_defaults


logger = logging.getLogger(__name__)


def _normalize_code(service_code: str) -> str:
    return service_code.strip().lower()


class ModelRegistry:
    """Service code -> CostModel lookup."""

    def __init__(self, models: Optional[Iterable[CostModel]] = None):
        self._models: Dict[str, CostModel] = {}
        for model in models or []:
            self.register(model)

    def register(self, model: CostModel) -> None:
        """
        Register a cost model under its service code.

        Raises:
            ValueError: If the code is already registered
        """
        code = _normalize_code(model.service_code)
        if code in self._models:
            raise ValueError(f"Cost model already registered for service: {code}")
        self._models[code] = model

    def resolve(self, service_code: str) -> CostModel:
        """
        Find the cost model for a service code (case-insensitive).

        Raises:
            UnsupportedServiceError: If no model is registered for the code
        """
        model = self._models.get(_normalize_code(service_code or ""))
        if model is None:
            raise UnsupportedServiceError(service_code)
        return model

    def is_supported(self, service_code: str) -> bool:
        return _normalize_code(service_code or "") in self._models

    def list_supported(self) -> List[str]:
        """Registered service codes, sorted."""
        return sorted(self._models)

    def list_models(self) -> List[CostModel]:
        return [self._models[code] for code in self.list_supported()]

    def describe(self, service_code: str) -> Dict[str, Any]:
        """
        Metadata for one service, with its configuration schema and defaults.

        Args:
            service_code: Service code (e.g., 'ec2')

        Returns:
            Dictionary with code, name, category, description,
            configurationSchema (JSON schema) and defaults

        Raises:
            UnsupportedServiceError: If no model is registered for the code
        """
        model = self.resolve(service_code)
        configuration_class = model.configuration_class
        return {
            **model.to_dict(),
            "configurationSchema": configuration_class.model_json_schema(by_alias=True),
            "defaults": configuration_defaults(configuration_class),
        }


ALL_MODELS: List[CostModel] = [
    *compute.MODELS,
    *storage.MODELS,
    *database.MODELS,
    *networking.MODELS,
    *integration.MODELS,
    *analytics.MODELS,
    *management.MODELS,
]

_model_registry = ModelRegistry(ALL_MODELS)
logger.debug(f"Registered {len(ALL_MODELS)} cost models")


def get_model_registry() -> ModelRegistry:
    """
    Get the global model registry instance.

    Returns:
        ModelRegistry with every built-in cost model
    """
    return _model_registry
