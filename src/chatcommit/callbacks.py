"""Dash callbacks wiring the UI to the orchestrator."""

import logging
from typing import Any, Dict, List, Optional

import dash_bootstrap_components as dbc
from dash import Input, Output, State, html, no_update

from .errors import ChatCommitError
from .models import (
    MODEL_ROLE,
    USER_ROLE,
    ChangeProposal,
    ConversationTurn,
    get_model,
)

logger = logging.getLogger(__name__)


def handle_message(
    app,
    user_input: str,
    history: List[Dict[str, Any]],
    session_id: Optional[str],
    model_id: str,
) -> Dict[str, Any]:
    """Runs one chat turn and returns the new transcript, session and proposal."""
    text = user_input.strip()
    turns = [ConversationTurn(role=m["role"], text=m["text"]) for m in history]

    file_tree = ()
    if app.include_file_tree:
        file_tree = app.orchestrator.gather_context(app.coordinates())
    response = app.orchestrator.converse(
        turns, text, get_model(model_id), file_tree=file_tree
    )
    proposal = response.structured_data
    proposal_data = proposal.model_dump() if proposal else None

    session_id = _save_turn(app, session_id, text, response.text, proposal)
    messages = [
        *history,
        {"role": USER_ROLE, "text": text},
        {"role": MODEL_ROLE, "text": response.text, "structured_data": proposal_data},
    ]
    return {"messages": messages, "session_id": session_id, "proposal": proposal_data}


def _save_turn(app, session_id, user_text, model_text, proposal) -> Optional[str]:
    # History is a convenience; a failing store never costs the user the reply.
    try:
        if not session_id:
            session_id = app.store.create_session(user_text).id
        app.store.save_message(session_id, USER_ROLE, user_text)
        app.store.save_message(session_id, MODEL_ROLE, model_text, proposal)
    except Exception:
        logger.exception("Error saving messages to chat history")
    return session_id


def handle_submit(app, n_clicks, user_input, history, session_id, model_id):
    """Outputs of the send button: transcript, session, proposal, input, status.

    The proposal store always takes the new turn's proposal, so a reply without
    one clears the previous commit card.
    """
    if not n_clicks or not user_input or not user_input.strip():
        return no_update, no_update, no_update, no_update, no_update
    result = handle_message(app, user_input, history or [], session_id, model_id)
    return result["messages"], result["session_id"], result["proposal"], "", ""


def handle_commit(app, proposal_data: Dict[str, Any]):
    """Commits the pending proposal and renders the outcome."""
    try:
        proposal = ChangeProposal.model_validate(proposal_data)
        result = app.orchestrator.confirm_and_commit(proposal, app.coordinates())
    except ChatCommitError as e:
        return dbc.Alert(f"Commit failed: {e.message}", color="danger")
    children = [result.message]
    if result.html_url:
        children += [" ", html.A("View commit", href=result.html_url, target="_blank")]
    return dbc.Alert(children, color="success")


def register_callbacks(app):
    @app.callback(
        [
            Output("history_store", "data"),
            Output("session_store", "data"),
            Output("proposal_store", "data"),
            Output("input_textarea", "value"),
            Output("status_indicator", "children"),
        ],
        [Input("submit_button", "n_clicks")],
        [
            State("input_textarea", "value"),
            State("history_store", "data"),
            State("session_store", "data"),
            State("model_select", "value"),
        ],
        prevent_initial_call=True,
    )
    def send_message(n_clicks, user_input, history, session_id, model_id):
        return handle_submit(app, n_clicks, user_input, history, session_id, model_id)

    @app.callback(
        Output("messages_container", "children"),
        Input("history_store", "data"),
    )
    def render_messages(history):
        return app.layout_builder.build_messages(history or [])

    @app.callback(
        Output("proposal_container", "children"),
        Input("proposal_store", "data"),
    )
    def render_proposal(proposal_data):
        proposal = None
        if proposal_data:
            proposal = ChangeProposal.model_validate(proposal_data)
        return app.layout_builder.build_proposal(proposal)

    @app.callback(
        Output("commit_status", "children"),
        Input("commit_button", "n_clicks"),
        State("proposal_store", "data"),
        prevent_initial_call=True,
    )
    def commit_proposal(n_clicks, proposal_data):
        if not n_clicks or not proposal_data:
            return no_update
        return handle_commit(app, proposal_data)

    @app.callback(
        [
            Output("history_store", "data", allow_duplicate=True),
            Output("session_store", "data", allow_duplicate=True),
            Output("proposal_store", "data", allow_duplicate=True),
        ],
        Input("new_conversation_button", "n_clicks"),
        prevent_initial_call=True,
    )
    def new_chat(n_clicks):
        if not n_clicks:
            return no_update, no_update, no_update
        return [], None, None
