"""
AI Chat Service - Advisory agent with business context.

This service provides:
- Chat threads bound to one organization
- Context-aware replies using the latest business data
- Knowledge base search through Claude tool calling
- "Suggest next question" prompts

Upstream failures never reach the caller: the assistant reply degrades to a
fixed apology and suggestions fall back to a canned question.
"""

import logging
import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from ai_service import AIServiceError, extract_text
from database.models import ChatMessage, ChatThread
from services.access_control import NotFound, WRITE_ROLES, require_role, resolve_access
from services.ai_context import AIContextService
from services.knowledge_base import SEARCH_TOOL_SCHEMA, KnowledgeBaseService, format_search_results
from validators import raise_if_invalid, sanitize_string, validate_chat_message

logger = logging.getLogger(__name__)

MARKDOWN_EMPHASIS = re.compile(r'\*\*|__|`')
MARKDOWN_PREFIX = re.compile(r'^(?:#+\s*|>\s*|[-*+]\s+|\d+[.)]\s+)+')


def clean_question(text: str) -> Optional[str]:
    """First non-empty line of model output with markdown stripped"""
    for line in (text or '').splitlines():
        line = MARKDOWN_EMPHASIS.sub('', line.strip())
        line = MARKDOWN_PREFIX.sub('', line)
        line = line.strip().strip('*_').strip().strip('"').strip()
        if line:
            return line
    return None


def serialize_blocks(content) -> List[Dict[str, Any]]:
    """Turn response content blocks back into message params"""
    blocks = []
    for block in content or []:
        block_type = getattr(block, 'type', None)
        if block_type == 'text':
            blocks.append({'type': 'text', 'text': block.text})
        elif block_type == 'tool_use':
            blocks.append({'type': 'tool_use', 'id': block.id, 'name': block.name, 'input': block.input})
    return blocks


class AIChatService:
    """Service for AI-powered chat with database context."""

    SYSTEM_PROMPT = """You are a world-class business consultant specializing in the car detailing industry. Your analysis must be sharp, proactive, and data-driven. Your primary goal is to help the user increase profitability and efficiency.
- **Use Your Tools:** You have access to a knowledge base. When a user asks a question, first check the knowledge base to see if a relevant article exists.
- **Correlate Data:** Proactively look for connections. Specifically compare **Marketing Spend** to **Jobs by Lead Source** to evaluate marketing effectiveness.
- **Analyze Profitability:** Use the **Detailed Job Data Summary** to identify the most profitable job types and effective lead sources.
- **Be Actionable:** Always provide clear, actionable recommendations.
Structure your responses in Markdown. Base your analysis on the most recent data provided in the prompt.

Current date: {current_date}
"""

    SUGGEST_PROMPT = """You are a sharp, proactive AI business consultant for a car detailer. Your task is to suggest one single, highly insightful follow-up question for the user to ask based on their business data. Your question should guide the user to discover a hidden opportunity, a potential risk, or a critical connection. Return ONLY the question as a single line of plain text.

**BUSINESS DATA:**
{context}"""

    DEGRADED_REPLY = "I encountered an error processing your request. Please try again."
    FALLBACK_QUESTION = "Which job type brought in the most revenue over the last 30 days, and how could I sell more of it?"
    MAX_TOOL_ROUNDS = 3
    HISTORY_LIMIT = 10

    def __init__(self, session: Session, identity: Optional[str], ai_service, config=None,
                 now: Callable[[], datetime] = datetime.utcnow):
        self.session = session
        self.identity = identity
        self.ai_service = ai_service
        self.config = config or {}
        self._now = now

    # ------------------------------------------------------------------
    # Threads & messages
    # ------------------------------------------------------------------

    def create_thread(self, org_id: str, title: Optional[str] = None) -> Dict:
        """Open a thread bound to an organization. Any member may start one."""
        access = resolve_access(self.session, self.identity, org_id)
        thread = ChatThread(
            org_id=org_id,
            created_by=access.user.id,
            title=sanitize_string(title, max_length=255) if title else None
        )
        self.session.add(thread)
        self.session.flush()
        logger.info(f"Created chat thread {thread.id} in organization {org_id}")
        return thread.to_dict()

    def _load_thread(self, thread_id: str) -> ChatThread:
        thread = self.session.get(ChatThread, thread_id)
        if not thread:
            raise NotFound("Thread not found")
        return thread

    def list_messages(self, thread_id: str) -> List[Dict]:
        """Message feed, oldest first."""
        thread = self._load_thread(thread_id)
        resolve_access(self.session, self.identity, thread.org_id)
        messages = self.session.query(ChatMessage).filter(
            ChatMessage.thread_id == thread_id
        ).order_by(ChatMessage.created_at).all()
        return [m.to_dict() for m in messages]

    def _add_message(self, thread_id: str, role: str, content: str) -> ChatMessage:
        message = ChatMessage(thread_id=thread_id, role=role, content=content)
        self.session.add(message)
        self.session.flush()
        return message

    def send_message(self, thread_id: str, message: str) -> Dict:
        """
        Post a user message and store the assistant's reply.

        Args:
            thread_id: Chat thread ID
            message: User's message (1..10000 chars)

        Returns:
            Dict with the stored user and assistant messages
        """
        thread = self._load_thread(thread_id)
        access = resolve_access(self.session, self.identity, thread.org_id)
        require_role(access, WRITE_ROLES, "chat with the advisor")
        raise_if_invalid(validate_chat_message(message), 'message')

        history = self.session.query(ChatMessage).filter(
            ChatMessage.thread_id == thread_id
        ).order_by(ChatMessage.created_at).all()

        user_message = self._add_message(thread_id, 'user', message)

        try:
            context_block = self._context_service(thread.org_id).build_context_block()
            messages = self._build_messages(message, history, context_block)
            reply = self._run_agent(thread.org_id, messages) or self.DEGRADED_REPLY
        except Exception as e:
            logger.error(f"Error in AI chat for thread {thread_id}: {e}")
            reply = self.DEGRADED_REPLY

        assistant_message = self._add_message(thread_id, 'assistant', reply)

        return {
            'userMessage': user_message.to_dict(),
            'assistantMessage': assistant_message.to_dict()
        }

    def suggest_next_question(self, thread_id: str) -> str:
        """One plain-text follow-up question; falls back to a canned question."""
        thread = self._load_thread(thread_id)
        resolve_access(self.session, self.identity, thread.org_id)

        try:
            context_block = self._context_service(thread.org_id).build_context_block()
            text = self.ai_service.complete_text(
                self.SUGGEST_PROMPT.format(context=context_block),
                max_tokens=200
            )
        except Exception as e:
            logger.error(f"Error suggesting question for thread {thread_id}: {e}")
            return self.FALLBACK_QUESTION

        return clean_question(text) or self.FALLBACK_QUESTION

    # ------------------------------------------------------------------
    # Agent internals
    # ------------------------------------------------------------------

    def _context_service(self, org_id: str) -> AIContextService:
        return AIContextService(
            self.session, org_id,
            window_days=self.config.get('RECENT_JOBS_WINDOW_DAYS', 30),
            now=self._now
        )

    def _build_messages(self, message: str, history: List[ChatMessage],
                        context_block: str) -> List[Dict]:
        """Build the messages array for the API call."""
        messages = []

        for msg in history[-self.HISTORY_LIMIT:]:
            messages.append({'role': msg.role, 'content': msg.content})

        # Context rides on the current turn only
        messages.append({
            'role': 'user',
            'content': f"{context_block}\n\n{message}"
        })

        return messages

    def _run_agent(self, org_id: str, messages: List[Dict]) -> str:
        """Call Claude, answering knowledge base tool calls for up to MAX_TOOL_ROUNDS rounds."""
        system_prompt = self.SYSTEM_PROMPT.format(
            current_date=self._now().strftime('%Y-%m-%d %H:%M UTC')
        )

        for round_number in range(self.MAX_TOOL_ROUNDS + 1):
            # Last round has no tools so the model must answer in text
            tools = [SEARCH_TOOL_SCHEMA] if round_number < self.MAX_TOOL_ROUNDS else None
            response = self.ai_service.call_claude(messages=messages, tools=tools, system=system_prompt)

            if response.stop_reason != 'tool_use' or not tools:
                return extract_text(response)

            messages.append({'role': 'assistant', 'content': serialize_blocks(response.content)})

            tool_results = []
            for block in response.content:
                if getattr(block, 'type', None) == 'tool_use':
                    tool_results.append({
                        'type': 'tool_result',
                        'tool_use_id': block.id,
                        'content': self._execute_tool(org_id, block.name, block.input)
                    })
            messages.append({'role': 'user', 'content': tool_results})

        return extract_text(response)

    def _execute_tool(self, org_id: str, name: str, tool_input: Dict) -> str:
        if name != SEARCH_TOOL_SCHEMA['name']:
            logger.warning(f"Model requested unknown tool '{name}'")
            return f"Unknown tool: {name}"

        query = (tool_input or {}).get('query', '')
        logger.info(f"Knowledge base search for organization {org_id}: {query[:100]}")
        kb = KnowledgeBaseService(
            self.session, self.identity, self.ai_service,
            top_k=self.config.get('KNOWLEDGE_BASE_TOP_K', 3)
        )
        try:
            results = kb.search_unchecked(org_id, query) if query else []
        except AIServiceError as e:
            logger.error(f"Knowledge base search failed: {e}")
            return "Knowledge base search is currently unavailable."
        return format_search_results(results)


def get_ai_chat_service(session, identity: Optional[str], ai_service, config=None) -> AIChatService:
    """Factory function to create an AIChatService instance."""
    return AIChatService(session, identity, ai_service, config)
