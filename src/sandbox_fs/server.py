"""MCP server exposing the filesystem toolset over stdio.

Tools are registered from ``FileSystemTools.get_tools()``, so only enabled
tools are published. Each registered function keeps the method's signature
(and so its argument schema), refreshes the allowed roots from the client
when they are stale, and turns error responses into MCP tool errors.
"""

import asyncio
import functools
import inspect
import logging
from collections.abc import Awaitable, Callable

from mcp import types
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from mcp.server.session import ServerSession
from mcp.shared.exceptions import McpError

from sandbox_fs.config.schema import ServerSettings
from sandbox_fs.exceptions import ConfigurationError
from sandbox_fs.roots import RootsManager
from sandbox_fs.tools.filesystem import FileSystemTools

logger = logging.getLogger(__name__)

SERVER_NAME = "sandbox-fs"

SERVER_INSTRUCTIONS = """\
Filesystem access restricted to a set of allowed directories.
Call list_allowed_directories to see them. Paths may be absolute or relative
to the first allowed directory; symlinks are resolved before access is checked.
"""

_ROOTS_CAPABILITY = types.ClientCapabilities(roots=types.RootsCapability())


class RootsSync:
    """Keep the RootsManager in step with the client's roots.

    Roots start out stale and become stale again whenever the client sends a
    roots/list_changed notification. The next tool call re-fetches them.
    """

    def __init__(self, roots: RootsManager):
        self.roots = roots
        self._stale = True
        self._lock = asyncio.Lock()

    @property
    def stale(self) -> bool:
        return self._stale

    async def on_roots_list_changed(self, notification: types.RootsListChangedNotification) -> None:
        logger.info("Client roots changed")
        self._stale = True

    async def ensure_current(self, session: ServerSession | None) -> None:
        """Fetch roots from the client if they are stale.

        Args:
            session: Session of the current request, or None outside a request

        Raises:
            ConfigurationError: The client cannot supply roots, none are
                configured and workspace discovery is disabled
        """
        if not self._stale or session is None:
            return

        async with self._lock:
            if not self._stale:
                return

            if not session.check_client_capability(_ROOTS_CAPABILITY):
                if not self.roots.current() and not self.roots.workspace_mode:
                    raise ConfigurationError(
                        "No allowed directories configured and the client does not support roots. "
                        "Pass directories on the command line or enable workspace mode."
                    )
                logger.debug("Client does not support roots, keeping configured directories")
                self._stale = False
                return

            try:
                result = await session.list_roots()
            except McpError as e:
                logger.warning(f"Failed to fetch roots from client: {e}")
                self._stale = False
                return

            uris = [str(root.uri) for root in result.roots]
            logger.debug(f"Client supplied roots: {uris}")
            await asyncio.to_thread(self.roots.update_roots, uris)
            self._stale = False


def _as_mcp_tool(
    server: FastMCP, method: Callable[..., Awaitable[dict]], sync: RootsSync
) -> Callable[..., Awaitable[str]]:
    """Wrap a toolset method so it returns text or raises ToolError."""

    @functools.wraps(method)
    async def tool(**kwargs) -> str:
        try:
            session = server.get_context().session
        except ValueError:
            # Called directly, not from an MCP request
            session = None

        try:
            await sync.ensure_current(session)
        except ConfigurationError as e:
            raise ToolError(f"Error: {e}") from e

        response = await method(**kwargs)
        if not response["success"]:
            logger.debug(f"{method.__name__} failed ({response['error']}): {response['message']}")
            raise ToolError(f"Error: {response['message']}")
        return response["result"]

    tool.__signature__ = inspect.signature(method).replace(return_annotation=str)
    tool.__annotations__ = {**method.__annotations__, "return": str}
    return tool


def create_server(settings: ServerSettings, roots: RootsManager) -> FastMCP:
    """Build the FastMCP server with the enabled filesystem tools.

    Args:
        settings: Effective server settings
        roots: Manager owning the allowed directories

    Returns:
        Configured FastMCP instance, ready for ``run("stdio")``
    """
    server = FastMCP(SERVER_NAME, instructions=SERVER_INSTRUCTIONS)
    toolset = FileSystemTools(settings, roots)
    sync = RootsSync(roots)

    for method in toolset.get_tools():
        server.add_tool(
            _as_mcp_tool(server, method, sync),
            name=method.__name__,
            description=inspect.getdoc(method),
        )

    # FastMCP has no public API for registering notification handlers
    server._mcp_server.notification_handlers[types.RootsListChangedNotification] = (
        sync.on_roots_list_changed
    )

    logger.info(f"Registered {len(toolset.get_tools())} tools")
    return server
