"""
LLM factory: the single place where we create a LangChain chat model.

Supports 4 providers:
- ollama: free, runs locally (requires Ollama installed)
- gemini: Google's API
- claude: Anthropic's API
- openai: OpenAI's API

The content generator just calls `get_llm(...).invoke(messages)` without caring
which provider is active.
"""

from langchain_core.language_models import BaseChatModel

from skillroad.config import settings


def get_llm(temperature: float = 0.7) -> BaseChatModel:
    """
    Create and return a LangChain chat model based on current settings.
    Lower temperatures are used for assessments, where answers must be exact.
    """
    provider = settings.LLM_PROVIDER.lower()

    if provider == "ollama":
        from langchain_ollama import ChatOllama
        return ChatOllama(
            model=settings.OLLAMA_MODEL,
            base_url=settings.OLLAMA_BASE_URL,
            temperature=temperature,
            format="json",
        )

    elif provider == "gemini":
        from langchain_google_genai import ChatGoogleGenerativeAI
        return ChatGoogleGenerativeAI(
            model="gemini-2.5-flash",
            google_api_key=settings.LLM_API_KEY,
            temperature=temperature,
        )

    elif provider == "claude":
        from langchain_anthropic import ChatAnthropic
        return ChatAnthropic(
            model="claude-sonnet-4-20250514",
            anthropic_api_key=settings.LLM_API_KEY,
            temperature=temperature,
        )

    elif provider == "openai":
        from langchain_openai import ChatOpenAI
        return ChatOpenAI(
            model="gpt-4o",
            api_key=settings.LLM_API_KEY,
            temperature=temperature,
            model_kwargs={"response_format": {"type": "json_object"}},
        )

    else:
        raise ValueError(f"Unknown LLM provider: {provider}. Use ollama/gemini/claude/openai.")
