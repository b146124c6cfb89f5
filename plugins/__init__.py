# plugins/__init__.py
"""
Plugin Base Classes for the Tumblr Link Proxy
=============================================

This module defines the base interfaces shared by the service integrations
of the proxy. Each integration is split into three roles:

1. Authorization Plugins: Link a local user to an account on the external
   service and sign requests on that user's behalf
2. Resource Plugins: Read from or write to the external service's API
3. Route Plugins: Expose the integration over HTTP

Unlike a registry-driven plugin system, instances are constructed explicitly
at application startup and handed their collaborators through their
constructors. The base classes only describe the role a component plays and
provide metadata for logging and introspection.
"""

from typing import Any, Dict
import logging
from enum import Enum

logger = logging.getLogger(__name__)

class PluginType(str, Enum):
    """
    Enum defining the roles a plugin can play.

    Types:
        AUTHORIZATION: Plugins that handle authentication with resource servers
        RESOURCE: Plugins that interact with resource server APIs
        ROUTE: Plugins that provide HTTP endpoints
    """
    AUTHORIZATION = "authorization"
    RESOURCE = "resource"
    ROUTE = "route"

class PluginBase:
    """
    Base class for all plugins.

    Class Attributes:
        plugin_type (PluginType): The role of the plugin
        service_name (str): Unique identifier for the service this plugin supports
                           (e.g., "tumblr")
    """

    plugin_type: PluginType
    service_name: str

    @classmethod
    def get_metadata(cls) -> Dict[str, Any]:
        """
        Return metadata about the plugin for logging and introspection.

        Returns:
            Dict[str, Any]: Dictionary containing plugin metadata including:
                - plugin_type: The type of plugin
                - service_name: The service this plugin supports
                - class_name: The name of the plugin class
        """
        return {
            "plugin_type": cls.plugin_type,
            "service_name": cls.service_name,
            "class_name": cls.__name__
        }

class AuthorizationPlugin(PluginBase):
    """
    Base class for plugins that link local users to external accounts.

    Authorization plugins drive the handshake with the external service and
    produce the credentials that resource plugins later use to sign requests.
    """

    plugin_type = PluginType.AUTHORIZATION

class ResourcePlugin(PluginBase):
    """
    Base class for plugins that call the external service's API.

    Resource plugins receive an HTTP client and whatever credentials they need
    at construction time and expose service-specific read or write operations.
    """

    plugin_type = PluginType.RESOURCE

class RoutePlugin(PluginBase):
    """
    Base class for plugins that provide their own routes.

    The routes provided by a plugin are mounted under a prefix chosen by the
    plugin, e.g. "/tumblr/oauth", to create appropriate namespacing.
    """

    plugin_type = PluginType.ROUTE
    prefix: str = ""

    def get_router(self):
        """
        Get the router for this plugin's routes.

        Returns:
            fastapi.APIRouter: The router with all plugin-specific routes

        Raises:
            NotImplementedError: If the subclass doesn't implement this method
        """
        raise NotImplementedError("Subclasses must implement get_router")
