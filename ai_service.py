"""
Centralized AI Service Manager
Handles all AI API calls with retry logic, error handling, and configuration management
"""
import json
import re
import time
import logging
from typing import Optional, Dict, Any, List
from functools import wraps

import anthropic
import openai

logger = logging.getLogger(__name__)

JSON_FENCE_PATTERN = re.compile(r'^```(?:json)?\s*|\s*```$', re.MULTILINE)


class AIServiceError(Exception):
    """Base exception for AI service errors"""
    pass


class AIServiceUnavailable(AIServiceError):
    """Raised when AI service is not configured or unavailable"""
    pass


class AIServiceTimeout(AIServiceError):
    """Raised when AI service times out"""
    pass


class UpstreamGenerationFailure(AIServiceError):
    """Raised when the model call fails or returns unusable output"""
    pass


def retry_on_failure(max_attempts=None, delay=None, backoff=2):
    """
    Decorator to retry a service method on failure with exponential backoff

    Attempts and initial delay default to the instance's AI_RETRY_ATTEMPTS /
    AI_RETRY_DELAY config. AIServiceUnavailable is never retried.

    Args:
        max_attempts: Maximum number of attempts
        delay: Initial delay between retries (seconds)
        backoff: Multiplier for delay on each retry
    """
    def decorator(func):
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            attempts = max_attempts or self.config.get('AI_RETRY_ATTEMPTS', 3)
            current_delay = delay if delay is not None else self.config.get('AI_RETRY_DELAY', 2)
            last_exception = None

            for attempt in range(attempts):
                try:
                    return func(self, *args, **kwargs)
                except AIServiceUnavailable:
                    raise
                except Exception as e:
                    last_exception = e
                    logger.warning(
                        f"Attempt {attempt + 1}/{attempts} failed for {func.__name__}: {str(e)}"
                    )

                    if attempt < attempts - 1:
                        logger.info(f"Retrying in {current_delay} seconds...")
                        time.sleep(current_delay)
                        current_delay *= backoff
                    else:
                        logger.error(f"All {attempts} attempts failed for {func.__name__}")

            raise last_exception

        return wrapper
    return decorator


def extract_text(response) -> str:
    """Concatenate the text blocks of a Claude message response"""
    parts = [block.text for block in (response.content or []) if getattr(block, 'type', None) == 'text']
    return "".join(parts).strip()


def parse_json_response(text: str) -> Any:
    """
    Parse a JSON payload from model output, tolerating markdown code fences

    Raises:
        UpstreamGenerationFailure: If the text is not valid JSON
    """
    cleaned = JSON_FENCE_PATTERN.sub('', (text or '').strip()).strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise UpstreamGenerationFailure(f"Model returned malformed JSON: {e}")


class AIService:
    """
    Centralized AI service manager with retry logic and error handling
    """

    def __init__(self, config):
        """
        Initialize AI service with configuration

        Args:
            config: Flask app configuration (or any mapping with the same keys)
        """
        self.config = config
        self.anthropic_client = None
        self.openai_client = None

        self._initialize_clients()

    def _initialize_clients(self):
        """Initialize AI API clients"""
        timeout = self.config.get('AI_TIMEOUT', 120)

        # Anthropic Claude (chat, plans, suggestions)
        if self.config.get('ANTHROPIC_API_KEY'):
            try:
                self.anthropic_client = anthropic.Anthropic(
                    api_key=self.config['ANTHROPIC_API_KEY'],
                    timeout=timeout
                )
                logger.info("Anthropic Claude client initialized")
            except Exception as e:
                logger.error(f"Failed to initialize Anthropic client: {e}")

        # OpenAI (knowledge base embeddings)
        if self.config.get('OPENAI_API_KEY'):
            try:
                self.openai_client = openai.OpenAI(
                    api_key=self.config['OPENAI_API_KEY'],
                    timeout=timeout
                )
                logger.info("OpenAI embeddings client initialized")
            except Exception as e:
                logger.error(f"Failed to initialize OpenAI client: {e}")

    @retry_on_failure()
    def call_claude(
        self,
        messages: List[Dict[str, Any]],
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        tools: Optional[List] = None,
        system: Optional[str] = None
    ):
        """
        Call Claude API with retry logic

        Args:
            messages: List of message dictionaries
            model: Model name (defaults to config)
            max_tokens: Maximum tokens (defaults to config)
            temperature: Temperature setting (defaults to config)
            tools: Tool definitions for agentic mode
            system: System prompt

        Returns:
            Anthropic Message response

        Raises:
            AIServiceUnavailable: If Claude is not configured
            AIServiceError: On API errors
        """
        if not self.anthropic_client:
            raise AIServiceUnavailable("Anthropic Claude is not configured")

        model_config = self.config['AI_MODELS']['claude']
        model = model or model_config['model']
        max_tokens = max_tokens or model_config['max_tokens']
        temperature = temperature if temperature is not None else model_config['temperature']

        try:
            logger.info(f"Calling Claude API: model={model}, max_tokens={max_tokens}")

            params = {
                'model': model,
                'max_tokens': max_tokens,
                'temperature': temperature,
                'messages': messages,
            }
            if tools:
                params['tools'] = tools
            if system:
                params['system'] = system

            response = self.anthropic_client.messages.create(**params)

            logger.info(f"Claude API call successful: stop_reason={response.stop_reason}")
            return response

        except anthropic.APITimeoutError as e:
            logger.error(f"Claude API timeout: {e}")
            raise AIServiceTimeout(f"Claude API timed out: {e}")
        except anthropic.APIError as e:
            logger.error(f"Claude API error: {e}")
            raise AIServiceError(f"Claude API error: {e}")

    def complete_text(self, prompt: str, system: Optional[str] = None,
                      max_tokens: Optional[int] = None) -> str:
        """Single-turn completion returning the response text"""
        response = self.call_claude(
            messages=[{'role': 'user', 'content': prompt}],
            system=system,
            max_tokens=max_tokens
        )
        return extract_text(response)

    def complete_json(self, prompt: str, system: Optional[str] = None) -> Any:
        """
        Single-turn completion whose output must be JSON

        Raises:
            UpstreamGenerationFailure: If the output cannot be parsed
        """
        text = self.complete_text(prompt, system=system)
        return parse_json_response(text)

    @retry_on_failure()
    def embed(self, texts: List[str]) -> List[List[float]]:
        """
        Create embedding vectors for a batch of texts

        Raises:
            AIServiceUnavailable: If OpenAI is not configured
            AIServiceError: On API errors
        """
        if not self.openai_client:
            raise AIServiceUnavailable("OpenAI embeddings are not configured")

        model = self.config['AI_MODELS']['embedding']['model']

        try:
            logger.info(f"Creating embeddings: model={model}, count={len(texts)}")
            response = self.openai_client.embeddings.create(model=model, input=texts)
            return [item.embedding for item in response.data]
        except openai.APITimeoutError as e:
            logger.error(f"OpenAI embeddings timeout: {e}")
            raise AIServiceTimeout(f"OpenAI embeddings timed out: {e}")
        except openai.APIError as e:
            logger.error(f"OpenAI embeddings error: {e}")
            raise AIServiceError(f"OpenAI embeddings error: {e}")

    def is_available(self, service: str) -> bool:
        """
        Check if a specific AI service is available

        Args:
            service: Service name ('claude', 'embeddings')

        Returns:
            True if service is available, False otherwise
        """
        if service == 'claude':
            return self.anthropic_client is not None
        elif service == 'embeddings':
            return self.openai_client is not None
        else:
            return False
