"""
Session API routes.
Live table sessions: list, walk-in start, end, and turnover risks.
"""

from flask_login import login_required, current_user

from models.booking import (
    list_active_sessions,
    start_walk_in_session,
    end_session_and_complete_booking,
    get_turnover_risks,
)
from utils.api_response import api_result, api_success, get_json_object
from utils.decorators import venue_access_required


def register_routes(bp):
    """Register session routes on the blueprint."""

    @bp.route('/venues/<int:venue_id>/sessions', methods=['GET'])
    @login_required
    @venue_access_required
    def list_sessions(venue_id):
        """Open sessions for a venue with table label and game title."""
        return api_result(list_active_sessions(venue_id))

    @bp.route('/venues/<int:venue_id>/sessions', methods=['POST'])
    @login_required
    @venue_access_required
    def walk_in(venue_id):
        """
        Start a session for a walk-in party.

        Request body (JSON):
            table_id: Table ID (required)
            game_id: Game ID (optional)
        """
        data = get_json_object()
        result = start_walk_in_session(venue_id, data.get('table_id'), data.get('game_id'))
        return api_result(result, success_status=201)

    @bp.route('/sessions/<int:session_id>/end', methods=['POST'])
    @login_required
    @venue_access_required
    def end(session_id):
        """End a session and complete its seated booking, if any."""
        return api_result(end_session_and_complete_booking(session_id, user_id=current_user.id))

    @bp.route('/venues/<int:venue_id>/turnover-risks', methods=['GET'])
    @login_required
    @venue_access_required
    def turnover_risks(venue_id):
        """Open sessions that may run into the next booking on their table."""
        risks = get_turnover_risks(venue_id)
        return api_success(data=risks, count=len(risks))
