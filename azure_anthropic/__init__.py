"""Azure Anthropic: Anthropic models deployed on Azure, as a workflow
node and as a LangChain chat model."""

__version__ = "0.1.0"
