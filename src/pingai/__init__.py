"""PingAI: health checks for OpenAI-, Anthropic- and Gemini-style LLM APIs."""

__version__ = "0.1.0"
