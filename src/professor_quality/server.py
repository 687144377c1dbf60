"""Professor Quality MCP + HTTP server.

FastMCP server exposing the controller both as read-only MCP tools and as
plain JSON routes under ``/r0`` and ``/internal``.
Run: professor-quality-mcp
"""

from __future__ import annotations

import logging
import os

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations
from starlette.requests import Request
from starlette.responses import JSONResponse

from . import __version__
from .controller import ProfessorController
from .core.clients.rmp import RMPGateway
from .core.models import Comment

logger = logging.getLogger(__name__)

READ_ONLY = ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=True, openWorldHint=True)

RMP_ERROR = {"error": "RMP"}


def _comments_payload(ratings) -> list[dict]:
    return [Comment.from_rating(r).model_dump(mode="json", by_alias=True) for r in ratings]


def create_server(
    controller: ProfessorController,
    host: str = "localhost",
    port: int = 8000,
) -> FastMCP:
    """Build the FastMCP app with every tool and route bound to ``controller``."""
    mcp = FastMCP(
        "Professor Quality",
        instructions="Look up professors on RateMyProfessors by name: weighted quality scores and review comments.",
        host=host,
        port=port,
    )

    # ─── HTTP routes ─────────────────────────────────────────────────────────

    @mcp.custom_route("/version", methods=["GET"])
    async def version(request: Request) -> JSONResponse:
        return JSONResponse({"version": __version__})

    @mcp.custom_route("/r0/professor/search/{name}", methods=["GET"])
    async def search_route(request: Request) -> JSONResponse:
        records = await controller.professor_search(request.path_params["name"])
        if records is None:
            return JSONResponse(RMP_ERROR)
        return JSONResponse([r.to_summary().model_dump(mode="json") for r in records])

    @mcp.custom_route("/r0/professor/{name}/overview", methods=["GET"])
    async def overview_route(request: Request) -> JSONResponse:
        record = await controller.professor_overview(request.path_params["name"])
        if record is None:
            return JSONResponse(RMP_ERROR)
        return JSONResponse(record.to_overview().model_dump(mode="json"))

    @mcp.custom_route("/r0/professor/{name}/comments", methods=["GET"])
    async def comments_route(request: Request) -> JSONResponse:
        ratings = await controller.professor_comments(request.path_params["name"])
        return JSONResponse(_comments_payload(ratings))

    @mcp.custom_route("/r0/professor/{name}/course/{course}/comments", methods=["GET"])
    async def course_comments_route(request: Request) -> JSONResponse:
        ratings = await controller.professor_comments(
            request.path_params["name"], request.path_params["course"],
        )
        return JSONResponse(_comments_payload(ratings))

    @mcp.custom_route("/internal/rmp_graphql_token", methods=["GET"])
    async def token_route(request: Request) -> JSONResponse:
        token = await controller.graphql_token()
        if token is None:
            return JSONResponse(RMP_ERROR)
        return JSONResponse({"token": token})

    # ─── MCP tools ───────────────────────────────────────────────────────────

    @mcp.tool(annotations=READ_ONLY)
    async def professor_overview(name: str) -> dict:
        """Weighted quality score for a professor, all-time and over the last year.

        Args:
            name: Professor's name as a student would type it (e.g., 'Jane Doe').
        """
        record = await controller.professor_overview(name)
        if record is None:
            return RMP_ERROR
        return record.to_overview().model_dump(mode="json")

    @mcp.tool(annotations=READ_ONLY)
    async def professor_comments(name: str, course: str = "") -> dict:
        """Student review comments for a professor, optionally for a single course.

        Args:
            name: Professor's name.
            course: Course code to filter on (e.g., 'CS2110'). Leave empty for all courses.
        """
        ratings = await controller.professor_comments(name, course or None)
        return {
            "name": name,
            "course": course or None,
            "comments": _comments_payload(ratings),
            "count": len(ratings),
        }

    @mcp.tool(annotations=READ_ONLY)
    async def professor_search(name: str) -> dict:
        """All RateMyProfessors matches for a name, best match first.

        Args:
            name: Professor's name or part of it.
        """
        records = await controller.professor_search(name)
        if records is None:
            return RMP_ERROR
        return {
            "query": name,
            "results": [r.to_summary().model_dump(mode="json") for r in records],
            "count": len(records),
        }

    return mcp


def main():
    """Entry point for the CLI command."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    host = os.environ.get("HOST", "localhost")
    port = int(os.environ.get("PORT", "8000"))

    controller = ProfessorController(RMPGateway())
    mcp = create_server(controller, host=host, port=port)
    logger.info("Serving on %s:%d", host, port)
    mcp.run(transport="streamable-http")


if __name__ == "__main__":
    main()
