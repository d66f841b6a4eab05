"""
FastAPI application — the cidchat entry point.

Chat with an OpenAI-compatible LLM node and archive finished
conversations to content-addressed storage:

  POST /api/chat                   one chat turn
  GET  /api/system-prompt          current and node-default system prompt
  POST /api/system-prompt          set (or clear) the prompt override
  POST /api/store-conversation     enrich + upload + index a conversation
  GET  /api/conversations          conversations archived this run, newest first
  GET  /api/conversations/{cid}    load an archived conversation
  GET  /api/health                 liveness + counts

Long-lived state (node config cache, prompt override, index) lives in a
Services container built once at startup and attached to app.state.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cidchat import __version__
from cidchat.archiver import ConversationArchiver
from cidchat.backends.base import BaseBackend
from cidchat.backends.openai_compat import OpenAICompatibleBackend
from cidchat.chat import ChatService
from cidchat.config import get_config, require
from cidchat.errors import CidchatError, StorageQuotaExceeded
from cidchat.models import Conversation
from cidchat.node_config import NodeConfigCache
from cidchat.prompts import PromptOverrideStore
from cidchat.retriever import ConversationRetriever
from cidchat.storage.backends import make_backend
from cidchat.storage.backends.base import ObjectBackend
from cidchat.storage.content_store import ContentStore
from cidchat.storage.index import ConversationIndex

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------

@dataclass
class Services:
    """Everything a request handler needs. Built once per process."""
    node_config: NodeConfigCache
    prompts: PromptOverrideStore
    chat: ChatService
    content_store: ContentStore
    index: ConversationIndex
    retriever: ConversationRetriever
    archiver: ConversationArchiver
    storage_backend: str = ""


def assemble_services(
    backend: BaseBackend,
    object_backend: ObjectBackend,
    *,
    storage_backend: str = "",
    public_url_template: str = "",
    space_identifier: str = "",
    space_name: str = "",
) -> Services:
    """Wire the components together around a node backend and an object backend."""
    node_config = NodeConfigCache(backend)
    prompts = PromptOverrideStore()
    content_store = ContentStore(object_backend, public_url_template)
    index = ConversationIndex()
    return Services(
        node_config=node_config,
        prompts=prompts,
        chat=ChatService(backend, node_config, prompts),
        content_store=content_store,
        index=index,
        retriever=ConversationRetriever(content_store),
        archiver=ConversationArchiver(
            node_config, content_store, index,
            space_identifier=space_identifier,
            space_name=space_name,
        ),
        storage_backend=storage_backend,
    )


def make_object_backend(storage_cfg: dict) -> ObjectBackend:
    backend_type = storage_cfg.get("backend", "http")
    if backend_type == "http":
        return make_backend(
            "http",
            upload_url=storage_cfg.get("upload_url", ""),
            api_key=storage_cfg.get("api_key", ""),
            gateway_url=storage_cfg.get("gateway_url") or "https://gateway.storacha.network",
            timeout=storage_cfg.get("timeout", 60),
        )
    return make_backend(backend_type)


def build_services(cfg: dict) -> Services:
    """Build Services from config.yaml contents."""
    backend_cfg = cfg.get("backend", {})
    storage_cfg = cfg.get("storage", {})

    backend = OpenAICompatibleBackend(
        name="node",
        url=require(cfg, "backend.url"),
        timeout=backend_cfg.get("timeout", 120),
        api_key=backend_cfg.get("api_key", ""),
    )
    return assemble_services(
        backend,
        make_object_backend(storage_cfg),
        storage_backend=storage_cfg.get("backend", "http"),
        public_url_template=storage_cfg.get("public_url_template", ""),
        space_identifier=storage_cfg.get("space_identifier", ""),
        space_name=storage_cfg.get("space_name", ""),
    )


def _setup_logging(cfg: dict):
    log_cfg = cfg.get("logging", {})
    level = getattr(logging, str(log_cfg.get("level", "INFO")).upper(), logging.INFO)
    log_file = log_cfg.get("file")

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        from pathlib import Path
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


def _services(request: Request) -> Services:
    return request.app.state.services


def _fail(error: str, status_code: int, **extra) -> JSONResponse:
    return JSONResponse({"success": False, "error": error, **extra}, status_code=status_code)


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

def create_app(services: Services | None = None) -> FastAPI:
    """
    Build the FastAPI app. With no services given, they are built from
    config.yaml at startup; tests pass their own.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup / shutdown lifecycle."""
        if services is None:
            cfg = get_config()
            _setup_logging(cfg)
            app.state.services = build_services(cfg)
            logger.info(
                "cidchat started — listening on %s:%s, node %s, storage %s",
                cfg.get("server", {}).get("host", "0.0.0.0"),
                cfg.get("server", {}).get("port", 3000),
                cfg["backend"]["url"],
                app.state.services.storage_backend,
            )
        else:
            app.state.services = services
        yield
        logger.info("cidchat shutting down")

    app = FastAPI(
        title="cidchat",
        description="Chat with an LLM node, archive conversations by CID.",
        version=__version__,
        lifespan=lifespan,
    )

    @app.exception_handler(CidchatError)
    async def cidchat_error_handler(request: Request, exc: CidchatError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        if isinstance(exc, StorageQuotaExceeded):
            return _fail(exc.message, exc.status_code, spaceIdentifier=exc.space_identifier)
        return _fail(exc.message, exc.status_code)

    # -----------------------------------------------------------------------
    # Chat
    # -----------------------------------------------------------------------

    @app.post("/api/chat")
    async def chat(request: Request):
        """One chat turn. Nothing is stored until the client asks."""
        try:
            body = await request.json()
        except Exception:
            return _fail("Invalid JSON", 400)

        message = body.get("message") if isinstance(body, dict) else None
        if not isinstance(message, str) or not message.strip():
            return _fail("message is required", 400)

        system_prompt = body.get("systemPrompt")
        if system_prompt is not None and not isinstance(system_prompt, str):
            return _fail("systemPrompt must be a string", 400)

        reply = await _services(request).chat.converse(message, system_prompt or None)
        return JSONResponse({
            "success": True,
            "message": reply.content,
            "usage": reply.usage.to_dict(),
        })

    # -----------------------------------------------------------------------
    # System prompt
    # -----------------------------------------------------------------------

    @app.get("/api/system-prompt")
    async def get_system_prompt(request: Request):
        svc = _services(request)
        remote = await svc.node_config.fetch()
        return JSONResponse({
            "success": True,
            "systemPrompt": svc.prompts.display_prompt(remote.system_prompt),
            "defaultSystemPrompt": remote.system_prompt,
        })

    @app.post("/api/system-prompt")
    async def set_system_prompt(request: Request):
        """Set the override. An empty or null prompt restores the node default."""
        try:
            body = await request.json()
        except Exception:
            return _fail("Invalid JSON", 400)

        prompt = body.get("systemPrompt") if isinstance(body, dict) else None
        if prompt is not None and not isinstance(prompt, str):
            return _fail("systemPrompt must be a string", 400)

        _services(request).prompts.set_override(prompt)
        return JSONResponse({"success": True, "message": "System prompt updated successfully"})

    # -----------------------------------------------------------------------
    # Archive
    # -----------------------------------------------------------------------

    @app.post("/api/store-conversation")
    async def store_conversation(request: Request):
        try:
            body = await request.json()
        except Exception:
            return _fail("Invalid JSON", 400)

        raw = body.get("conversation") if isinstance(body, dict) else None
        if not isinstance(raw, dict) or not raw.get("messages"):
            return _fail("Invalid conversation data", 400)

        try:
            conversation = Conversation.from_dict(raw)
        except (TypeError, ValueError) as e:
            return _fail(f"Invalid conversation data: {e}", 400)

        result = await _services(request).archiver.archive(conversation)
        return JSONResponse({
            "success": True,
            "storageCid": result.content_id,
            "ipfsUrl": result.public_url,
            "fileSizeBytes": result.size,
            "message": "Conversation stored successfully",
        })

    @app.get("/api/conversations")
    async def list_conversations(request: Request):
        records = _services(request).index.list()
        return JSONResponse({
            "success": True,
            "conversations": [r.to_dict() for r in records],
        })

    @app.get("/api/conversations/{cid}")
    async def get_conversation(cid: str, request: Request):
        conversation = await _services(request).retriever.load(cid)
        return JSONResponse({"success": True, "conversation": conversation.to_dict()})

    # -----------------------------------------------------------------------
    # Health
    # -----------------------------------------------------------------------

    @app.get("/api/health")
    async def health(request: Request):
        svc = _services(request)
        return JSONResponse({
            "status": "ok",
            "version": __version__,
            "storage_backend": svc.storage_backend,
            "conversations": svc.index.count,
            "model": svc.node_config.cached.model if svc.node_config.cached else None,
        })

    return app


app = create_app()
