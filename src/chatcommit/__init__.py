"""
The main entrypoint for the Chatcommit package.

This module contains the ChatCommit application class, which wires the provider
client, the commit gateway, the orchestrator, the history store and the layout
into one Dash app and mounts the server-side commit endpoint.
"""

from typing import Optional

from dash import Dash

from .config import Settings, get_settings, resolve_coordinates
from .github import CommitGateway
from .layout import Default, Layout
from .llm import ProviderClient
from .models import RepoCoordinates
from .orchestrator import Orchestrator
from .store import InMemory, Store


class ChatCommit(Dash):
    """
    A chat UI that turns model replies into confirmed GitHub commits.

    Every component is injectable; the constructor falls back to concrete
    defaults built from the settings.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        provider: Optional[ProviderClient] = None,
        gateway: Optional[CommitGateway] = None,
        store: Optional[Store] = None,
        layout: Optional[Layout] = None,
        include_file_tree: bool = False,
        **kwargs,
    ) -> None:
        """
        Initialize the application with configurable components.

        Parameters
        ----------
        settings : Settings, optional
            Process configuration. Defaults to the cached environment settings.
        provider : ProviderClient, optional
            Client that dispatches conversations to LLM backends.
        gateway : CommitGateway, optional
            Gateway performing GitHub file writes.
        store : Store, optional
            Chat history store. Defaults to store.InMemory().
        layout : Layout, optional
            Layout builder. Defaults to layout.Default().
        include_file_tree : bool, default=False
            Send the repository's file list to the model on every turn.
        **kwargs
            Additional arguments passed to the Dash constructor.

        Examples
        --------
        >>> app = ChatCommit()
        >>> app.run(debug=True)
        """
        self.settings = settings if settings is not None else get_settings()
        self.layout_builder = layout if layout is not None else Default()
        self.include_file_tree = include_file_tree

        kwargs.setdefault("suppress_callback_exceptions", True)
        if "external_stylesheets" not in kwargs:
            kwargs["external_stylesheets"] = []
        kwargs["external_stylesheets"].extend(
            self.layout_builder.get_external_stylesheets()
        )

        super().__init__(**kwargs)

        self.provider = (
            provider if provider is not None else ProviderClient(self.settings)
        )
        self.gateway = (
            gateway if gateway is not None else CommitGateway(self.settings)
        )
        self.orchestrator = Orchestrator(self.provider, self.gateway)
        self.store = store if store is not None else InMemory()

        self.layout = self.layout_builder.build_layout()
        self._register_callbacks()

    def coordinates(self) -> RepoCoordinates:
        """Repository coordinates for the current request."""
        return resolve_coordinates(self.settings)

    def _register_callbacks(self) -> None:
        """Registers the Dash callbacks and the commit endpoint."""
        from .callbacks import register_callbacks
        from .server import register_commit_route

        register_callbacks(self)
        register_commit_route(self.server, self.gateway, self.settings)
