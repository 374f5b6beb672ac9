"""Marketplace workflows built on the models and the injected gateways."""
