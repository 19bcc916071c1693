"""Container façade over the engine."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, TypeVar

from .call_site_chain import CallSiteChain
from .engine import Engine, Scope
from .exceptions import ContainerValidationError
from .registrations import Registration, RegistrationTable
from .stack_guard import DEFAULT_MAX_DEPTH_PER_STACK
from .type_filters import is_open_generic
from .typing_utils import type_name
from .validation import CallSiteValidator

logger = logging.getLogger(__name__)

TService = TypeVar("TService")


@dataclass(kw_only=True)
class ContainerOptions:
    validate_scopes: bool = False
    validate_on_build: bool = False
    max_stack_depth: int = DEFAULT_MAX_DEPTH_PER_STACK


class Container:
    def __init__(self, services: Iterable[Registration], options: ContainerOptions | None = None):
        self.options = options or ContainerOptions()
        self._validator = CallSiteValidator() if self.options.validate_scopes else None
        self._engine = Engine(services, self._validator, max_stack_depth=self.options.max_stack_depth)

        if self.options.validate_on_build:
            self._validate()

    def _validate(self):
        errors = []
        for registration in self.registrations:
            if is_open_generic(registration.service_type):
                continue
            try:
                call_site = self._engine.call_site_factory.get_call_site(registration.service_type, CallSiteChain())
                if call_site is not None and self._validator is not None:
                    self._validator.validate_call_site(call_site)
            except Exception as ex:
                logger.exception("Failed to build the call site for %s", type_name(registration.service_type))
                errors.append(ex)

        if errors:
            raise ContainerValidationError(errors)

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def registrations(self) -> RegistrationTable:
        return self._engine.registrations

    @property
    def is_disposed(self) -> bool:
        return self._engine.is_disposed

    def resolve(self, service_type: type[TService]) -> TService:
        return self._engine.root.resolve(service_type)

    def get_service(self, service_type: Any) -> Any:
        return self._engine.root.get_service(service_type)

    def create_scope(self) -> Scope:
        return self._engine.create_scope()

    def dispose(self):
        self._engine.dispose()

    def __enter__(self) -> Container:
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.dispose()
