"""
Browser and HTTP automation tools for AI agents, served over MCP.

One MCP connection drives one shared Chrome session (through Selenium) and one
shared HTTP client (through httpx). Neither is started up front: the first
tool that needs a session launches it, and later calls reuse it as long as it
is alive and was launched with compatible settings (headless mode, user agent,
proxy, browser binary). Asking for different settings relaunches it.

Every call goes through the same path:

    tools/call -> Dispatcher -> argument validation -> session acquire
               -> safe_execute(tool) -> ResultEnvelope -> MCP content

and always ends in exactly one envelope. Failures carry an error kind
(UnknownTool, InvalidArguments, SessionUnavailable, SessionLaunchFailed,
OperationTimeout, OperationFailed, UnexpectedFault) so an agent can decide
whether retrying makes sense.

Calls against the same session run one at a time. Console messages, network
failures and API responses are kept in a capped in-memory buffer that the
console_logs tool reads.

Configuration comes from environment variables (optionally a .env file), see
mcp_browser_tools.config.environment.
"""

__version__ = "0.3.0"
