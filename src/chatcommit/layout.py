"""Layout builders for the chat UI."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import dash_bootstrap_components as dbc
from dash import dcc, html
from dash.development.base_component import Component as DashComponent

from .models import AVAILABLE_MODELS, USER_ROLE, ChangeProposal

WELCOME_MESSAGE = (
    "Hello! I am your AI Fullstack Engineer. I can help you write components "
    "and commit them directly to your GitHub repository. What shall we build today?"
)


class Layout(ABC):
    """Interface for building the Dash component layout."""

    @abstractmethod
    def build_layout(self) -> DashComponent:
        """Constructs and returns the entire Dash component tree for the UI."""
        pass

    @abstractmethod
    def build_messages(self, messages: List[Dict[str, Any]]) -> List[DashComponent]:
        """Converts stored transcript messages into renderable components."""
        pass

    @abstractmethod
    def build_proposal(self, proposal: Optional[ChangeProposal]) -> DashComponent:
        """Renders the pending change proposal with its commit button."""
        pass

    def get_external_stylesheets(self) -> List[str]:
        return [dbc.themes.BOOTSTRAP]


class Default(Layout):
    """Builds the standard chat layout with a model picker and a commit card."""

    def build_layout(self) -> DashComponent:
        return html.Div(
            className="d-flex flex-column vh-100",
            children=[
                dcc.Store(id="history_store", data=[]),
                dcc.Store(id="session_store", data=None),
                dcc.Store(id="proposal_store", data=None),
                self.build_header(),
                html.Div(
                    className="d-flex flex-grow-1",
                    style={"overflow": "hidden"},
                    children=[
                        html.Main(
                            id="messages_container",
                            className="flex-grow-1 p-3",
                            style={"overflowY": "auto"},
                            children=self.build_messages([]),
                        ),
                        html.Aside(
                            id="proposal_container",
                            className="p-3 border-start",
                            style={"width": "40%", "overflowY": "auto"},
                            children=self.build_proposal(None),
                        ),
                    ],
                ),
                self.build_input_area(),
            ],
        )

    def build_header(self) -> DashComponent:
        return html.Header(
            className="p-2 bg-light border-bottom",
            children=[
                dbc.Container(
                    fluid=True,
                    children=[
                        dbc.Row(
                            align="center",
                            children=[
                                dbc.Col(html.H4("AI Dev Chat", className="m-0")),
                                dbc.Col(
                                    dcc.Dropdown(
                                        id="model_select",
                                        options=[
                                            {"label": m.display_name, "value": m.id}
                                            for m in AVAILABLE_MODELS
                                        ],
                                        value=AVAILABLE_MODELS[0].id,
                                        clearable=False,
                                        style={"minWidth": "240px"},
                                    ),
                                    width="auto",
                                ),
                                dbc.Col(
                                    dbc.Button(
                                        "New Chat",
                                        id="new_conversation_button",
                                        color="secondary",
                                        n_clicks=0,
                                    ),
                                    width="auto",
                                ),
                            ],
                        )
                    ],
                )
            ],
        )

    def build_input_area(self) -> DashComponent:
        return html.Footer(
            className="p-3 bg-light border-top",
            children=[
                dbc.InputGroup(
                    [
                        dbc.Textarea(
                            id="input_textarea", placeholder="Describe a change..."
                        ),
                        dbc.Button(
                            "Send", id="submit_button", color="primary", n_clicks=0
                        ),
                    ]
                ),
                dbc.Spinner(html.Div(id="status_indicator"), size="sm"),
            ],
        )

    def build_messages(self, messages):
        welcome = {"role": "model", "text": WELCOME_MESSAGE}
        return [self.build_message(m) for m in [welcome, *messages]]

    def build_message(self, message: Dict[str, Any]) -> DashComponent:
        style = {
            "padding": "10px",
            "borderRadius": "15px",
            "marginBottom": "10px",
            "maxWidth": "70%",
            "width": "fit-content",
        }
        if message["role"] == USER_ROLE:
            style["marginLeft"] = "auto"
            style["backgroundColor"] = "#dcf8c6"
        else:
            style["marginRight"] = "auto"
            style["backgroundColor"] = "#ffffff"
            style["border"] = "1px solid #eee"
        return html.Div(dcc.Markdown(message["text"]), style=style)

    def build_proposal(self, proposal):
        if proposal is None or not proposal.is_commit:
            return html.Div("No pending changes.", className="text-muted")
        return dbc.Card(
            [
                dbc.CardHeader(proposal.file_path or "(no file path)"),
                dbc.CardBody(
                    [
                        html.P(proposal.commit_message or "", className="fw-bold"),
                        dcc.Markdown(f"```\n{proposal.new_content or ''}\n```"),
                        dbc.Button(
                            "Commit to GitHub",
                            id="commit_button",
                            color="success",
                            n_clicks=0,
                            disabled=not proposal.is_committable,
                        ),
                        html.Div(id="commit_status", className="mt-2"),
                    ]
                ),
            ]
        )
