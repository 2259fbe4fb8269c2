"""Remote catalog access."""

from .flathub import AppInfo, CatalogError, FlathubClient, flathub_repo_url, repository_url

__all__ = ["AppInfo", "CatalogError", "FlathubClient", "flathub_repo_url", "repository_url"]
