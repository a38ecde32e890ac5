__version__ = "0.1.0"

AGENT_VERSION = f"zapcat_agent {__version__}"
