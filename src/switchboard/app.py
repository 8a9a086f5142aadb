"""Application orchestrator - wires all components and manages lifecycle."""

from __future__ import annotations

from switchboard.ai.agents.coding import CodingAgent
from switchboard.ai.agents.generic import GenericAgent
from switchboard.ai.agents.search import SearchAgent
from switchboard.ai.gateway import LLMGateway, create_gateway
from switchboard.ai.router import Router
from switchboard.ai.tools.code_executor import CodeExecutor, create_code_executor
from switchboard.ai.tools.search import BingSearchAdapter, SearchAdapter
from switchboard.chat.service import ChatService
from switchboard.config import AppConfig
from switchboard.log import get_logger
from switchboard.storage.conversation_repo import ConversationRepository
from switchboard.storage.database import Database
from switchboard.storage.message_repo import MessageRepository

logger = get_logger(__name__)


class SwitchboardApp:
    """Top-level application: builds every collaborator once and injects it.

    Any of the gateway and adapters can be passed in to replace the ones the
    configuration would build.
    """

    def __init__(
        self,
        config: AppConfig,
        gateway: LLMGateway | None = None,
        search_adapter: SearchAdapter | None = None,
        code_executor: CodeExecutor | None = None,
    ):
        self.config = config
        self.db = Database(config.storage.db_path)
        self.conversation_repo = ConversationRepository(self.db)
        self.message_repo = MessageRepository(self.db)

        self.gateway = gateway or create_gateway(config.gateway, config.anthropic, config.claude_code)
        self.search_adapter = search_adapter or BingSearchAdapter(config.search)
        self.code_executor = code_executor or create_code_executor(config.code_execution)

        self.router = Router(
            general=GenericAgent(self.gateway),
            web_search=SearchAgent(self.gateway, self.search_adapter),
            code_execution=CodingAgent(self.gateway, self.code_executor),
        )
        self.chat_service = ChatService(
            router=self.router,
            conversation_repo=self.conversation_repo,
            message_repo=self.message_repo,
            history_limit=config.chat.history_limit,
            title_max_length=config.chat.title_max_length,
        )

    async def start(self) -> None:
        await self.db.initialize()
        logger.info(
            "switchboard_started",
            gateway=self.config.gateway.backend,
            model=self.gateway.model_name,
            code_execution=self.config.code_execution.backend,
        )

    async def stop(self) -> None:
        await self.db.close()
        logger.info("switchboard_stopped")

    async def __aenter__(self) -> SwitchboardApp:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
