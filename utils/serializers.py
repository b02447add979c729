from models.meeting import ACTIVE_MEETING_STATUSES


def _iso(value):
    return value.isoformat() if value else None


def user_json(u, include_email=True):
    out = {
        "id": u.id,
        "name": u.name,
        "role": u.role,
        "description": u.description,
        "website": u.website,
        "createdAt": _iso(u.created_at),
    }
    if include_email:
        out["email"] = u.email
    return out


def user_brief(u):
    if u is None:
        return None
    return {"id": u.id, "name": u.name, "email": u.email}


def time_slot_json(s, include_meeting=False):
    out = {
        "id": s.id,
        "userId": s.user_id,
        "startTime": _iso(s.start_time),
        "endTime": _iso(s.end_time),
        "status": s.status,
        "isBooked": s.is_booked,
    }
    if include_meeting:
        active = next((m for m in s.meetings if m.status in ACTIVE_MEETING_STATUSES), None)
        out["meeting"] = None if active is None else {
            "id": active.id,
            "status": active.status,
            "buyer": user_brief(active.buyer),
        }
    return out


def meeting_json(m):
    return {
        "id": m.id,
        "companyId": m.company_id,
        "buyerId": m.buyer_id,
        "timeSlotId": m.time_slot_id,
        "status": m.status,
        "message": m.message,
        "createdAt": _iso(m.created_at),
        "updatedAt": _iso(m.updated_at),
        "company": user_brief(m.company),
        "buyer": user_brief(m.buyer),
        "timeSlot": time_slot_json(m.time_slot) if m.time_slot else None,
    }


def event_json(e):
    return {
        "id": e.id,
        "name": e.name,
        "description": e.description,
        "startDate": _iso(e.start_date),
        "endDate": _iso(e.end_date),
        "venue": e.venue,
        "headerImage": e.header_image,
        "headerText": e.header_text,
        "meetingDuration": e.meeting_duration,
        "operationStartTime": e.operation_start_time,
        "operationEndTime": e.operation_end_time,
        "lunchStartTime": e.lunch_start_time,
        "lunchEndTime": e.lunch_end_time,
        "status": e.status,
        "updatedAt": _iso(e.updated_at),
    }


def notification_json(n):
    return {
        "id": n.id,
        "userId": n.user_id,
        "type": n.type,
        "title": n.title,
        "message": n.message,
        "relatedId": n.related_id,
        "isRead": n.is_read,
        "createdAt": _iso(n.created_at),
    }
