"""
Event Routes
Event management, registration, check-in and the approval workflow
"""
from flask import Blueprint, Response, g, jsonify, request

from eventhub.schemas import (
    CheckInRequest,
    EventCreate,
    EventUpdate,
    RejectRequest,
    ReviewRequest,
    parse_body,
)
from eventhub.services import EventService, RegistrationService
from eventhub.utils import login_required, require_role

events_bp = Blueprint('events', __name__)


@events_bp.route('/')
def list_events():
    """List events - filters: status, category, search"""
    service = EventService()
    events = service.list_events(
        status=request.args.get('status'),
        category=request.args.get('category'),
        search=request.args.get('search'),
    )
    counts = service.registration_counts([e.id for e in events])
    return jsonify({
        'success': True,
        'data': [e.to_dict(registration_count=counts[e.id]) for e in events],
    })


@events_bp.route('/<int:event_id>')
def get_event(event_id):
    service = EventService()
    event = service.get(event_id)
    count = service.registration_counts([event.id])[event.id]
    return jsonify({'success': True, 'data': event.to_dict(registration_count=count)})


@events_bp.route('/', methods=['POST'])
@require_role('STAFF', 'ADMIN')
def create_event():
    event = EventService().create(parse_body(EventCreate), g.user)
    return jsonify({'success': True, 'data': event.to_dict(registration_count=0)}), 201


@events_bp.route('/<int:event_id>', methods=['PUT'])
@require_role('STAFF', 'ADMIN')
def update_event(event_id):
    event = EventService().update(event_id, parse_body(EventUpdate), g.user)
    return jsonify({'success': True, 'data': event.to_dict()})


@events_bp.route('/<int:event_id>', methods=['DELETE'])
@require_role('STAFF', 'ADMIN')
def delete_event(event_id):
    EventService().delete(event_id, g.user)
    return jsonify({'success': True, 'message': 'Event deleted successfully'})


# ========================================
# REGISTRATION
# ========================================

@events_bp.route('/<int:event_id>/register', methods=['POST'])
@login_required
def register_for_event(event_id):
    registration = RegistrationService().register(event_id, g.user)
    message = (
        'Registration submitted and awaiting approval'
        if registration.status == 'PENDING'
        else 'Registration confirmed'
    )
    return jsonify({'success': True, 'data': registration.to_dict(), 'message': message}), 201


@events_bp.route('/<int:event_id>/checkin', methods=['POST'])
@require_role('STAFF', 'ADMIN')
def check_in(event_id):
    data = parse_body(CheckInRequest)
    registration = RegistrationService().check_in(event_id, data.qr_token)
    return jsonify({
        'success': True,
        'data': registration.to_dict(),
        'message': f'{registration.user.display_name} checked in successfully',
    })


@events_bp.route('/<int:event_id>/registrations')
@require_role('STAFF', 'ADMIN')
def event_registrations(event_id):
    registrations = RegistrationService().for_event(event_id)
    return jsonify({'success': True, 'data': [r.to_dict() for r in registrations]})


@events_bp.route('/<int:event_id>/registrations/export')
@require_role('STAFF', 'ADMIN')
def export_registrations(event_id):
    csv_data = EventService().export_registrations_csv(event_id)
    return Response(
        csv_data,
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename=registrations-{event_id}.csv'},
    )


@events_bp.route('/user/registrations')
@login_required
def my_registrations():
    registrations = RegistrationService().for_user(g.user.id)
    return jsonify({
        'success': True,
        'data': [
            dict(r.to_dict(include_user=False), event=r.event.to_dict())
            for r in registrations
        ],
    })


# ========================================
# APPROVAL
# ========================================

@events_bp.route('/registrations/pending')
@require_role('STAFF', 'ADMIN')
def pending_registrations():
    registrations = RegistrationService().pending()
    return jsonify({
        'success': True,
        'data': [
            dict(r.to_dict(), event={'id': r.event.id, 'title': r.event.title})
            for r in registrations
        ],
    })


@events_bp.route('/registrations/<int:registration_id>/approve', methods=['PUT'])
@require_role('STAFF', 'ADMIN')
def approve_registration(registration_id):
    data = parse_body(ReviewRequest)
    registration = RegistrationService().approve(registration_id, g.user, data.comment)
    return jsonify({
        'success': True,
        'data': registration.to_dict(),
        'message': 'Registration approved',
    })


@events_bp.route('/registrations/<int:registration_id>/reject', methods=['PUT'])
@require_role('STAFF', 'ADMIN')
def reject_registration(registration_id):
    data = parse_body(RejectRequest)
    registration = RegistrationService().reject(registration_id, g.user, data.reason)
    return jsonify({
        'success': True,
        'data': registration.to_dict(),
        'message': 'Registration rejected',
    })
