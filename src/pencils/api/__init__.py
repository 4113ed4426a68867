"""Chainable REST resources over requests."""

from pencils.api.errors import DecodeError
from pencils.api.resource import Api, Resource
from pencils.api.response import ApiResponse
from pencils.api.schemas import BasicAuth, ClientConfig

__all__ = ["Api", "ApiResponse", "BasicAuth", "ClientConfig", "DecodeError", "Resource"]
