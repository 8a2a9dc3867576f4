"""Azure preview provider: budgets, subscriptions and resource lookup"""

__version__ = "0.1.0"

USER_AGENT = f"azurepreview-provider/{__version__}"
