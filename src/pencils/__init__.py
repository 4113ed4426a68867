from pencils.api import Api, ApiResponse, BasicAuth, ClientConfig, DecodeError, Resource

__all__ = ["Api", "ApiResponse", "BasicAuth", "ClientConfig", "DecodeError", "Resource"]
