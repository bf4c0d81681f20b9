"""
API routes exposing the data layer to the app screens.
Provides endpoints for:
- Health checks
- Appointment, user and notification CRUD
- Statistics per role
- Settings, backup/restore and storage diagnostics
- The stored session
"""

import json
import logging
from datetime import datetime, timezone

from aiohttp import web

from ..errors import NotFoundError, PersistenceError, SerializationError, ValidationError
from ..models import Doctor
from ..services import top_specialties

logger = logging.getLogger(__name__)


def create_app(data_layer) -> web.Application:
    """
    Create the aiohttp application with routes.

    Args:
        data_layer: DataLayer instance holding repositories and services

    Returns:
        Configured aiohttp Application
    """
    app = web.Application(middlewares=[cors_middleware, error_middleware])

    # Store services in app
    app["data"] = data_layer

    # Add routes
    app.router.add_get("/health", health_check)

    app.router.add_get("/api/appointments", list_appointments)
    app.router.add_post("/api/appointments", book_appointment)
    app.router.add_get("/api/appointments/{id}", get_appointment)
    app.router.add_patch("/api/appointments/{id}", update_appointment)
    app.router.add_delete("/api/appointments/{id}", delete_appointment)
    app.router.add_post("/api/appointments/{id}/confirm", confirm_appointment)
    app.router.add_post("/api/appointments/{id}/cancel", cancel_appointment)

    app.router.add_get("/api/users", list_users)
    app.router.add_post("/api/users", add_user)

    app.router.add_get("/api/notifications/{user_id}", list_notifications)
    app.router.add_get("/api/notifications/{user_id}/unread", unread_count)
    app.router.add_post("/api/notifications/{user_id}/read-all", mark_all_read)
    app.router.add_post("/api/notifications/item/{id}/read", mark_read)
    app.router.add_delete("/api/notifications/item/{id}", delete_notification)

    app.router.add_get("/api/statistics", general_statistics)
    app.router.add_get("/api/statistics/doctors/{id}", doctor_statistics)
    app.router.add_get("/api/statistics/patients/{id}", patient_statistics)

    app.router.add_get("/api/settings", get_app_settings)
    app.router.add_patch("/api/settings", update_app_settings)

    app.router.add_get("/api/backup", create_backup)
    app.router.add_post("/api/backup/restore", restore_backup)

    app.router.add_get("/api/storage/info", storage_info)
    app.router.add_post("/api/storage/clear-cache", clear_cache)
    app.router.add_delete("/api/storage", clear_storage)

    app.router.add_get("/api/session", get_session)
    app.router.add_post("/api/session", sign_in)
    app.router.add_delete("/api/session", sign_out)

    return app


@web.middleware
async def cors_middleware(request: web.Request, handler):
    """Handle CORS for frontend requests."""
    # Handle preflight
    if request.method == "OPTIONS":
        response = web.Response()
    else:
        try:
            response = await handler(request)
        except web.HTTPException as e:
            response = e

    # Add CORS headers
    origin = request.headers.get("Origin", "*")
    response.headers["Access-Control-Allow-Origin"] = origin
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, PATCH, DELETE, OPTIONS"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
    response.headers["Access-Control-Allow-Credentials"] = "true"

    return response


@web.middleware
async def error_middleware(request: web.Request, handler):
    """Turn data layer errors into JSON error responses."""
    try:
        return await handler(request)
    except NotFoundError as e:
        return web.json_response({"error": str(e)}, status=404)
    except (ValidationError, SerializationError) as e:
        return web.json_response({"error": str(e)}, status=400)
    except PersistenceError as e:
        logger.error(f"Storage failure on {request.method} {request.path}: {e}")
        return web.json_response({"error": "Storage unavailable"}, status=500)


async def _json_body(request: web.Request) -> dict:
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Request body must be UTF-8 encoded JSON")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _documents(entities) -> list:
    return [e.to_document() for e in entities]


async def health_check(request: web.Request) -> web.Response:
    """Health check endpoint."""
    return web.json_response({
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "medapp-data",
    })


# ==================== Appointments ====================

async def list_appointments(request: web.Request) -> web.Response:
    """
    List appointments.

    Query params:
    - doctorId: only this doctor's appointments
    - patientId: only this patient's appointments
    """
    repo = request.app["data"].appointments
    doctor_id = request.query.get("doctorId")
    patient_id = request.query.get("patientId")

    if doctor_id:
        appointments = await repo.for_doctor(doctor_id)
    elif patient_id:
        appointments = await repo.for_patient(patient_id)
    else:
        appointments = await repo.get_all()
    return web.json_response({"appointments": _documents(appointments)})


async def book_appointment(request: web.Request) -> web.Response:
    """
    Book an appointment.

    Request body:
    {
        "patientId": "patient-1",
        "doctorId": "1",
        "date": "25/12/2024",
        "time": "09:00"
    }
    """
    data = await _json_body(request)
    layer = request.app["data"]

    patient = await layer.users.get(str(data.get("patientId", "")))
    if patient is None:
        raise NotFoundError(f"patient {data.get('patientId')} not found")
    doctor = await layer.users.get(str(data.get("doctorId", "")))
    if not isinstance(doctor, Doctor):
        raise NotFoundError(f"doctor {data.get('doctorId')} not found")

    appointment = await layer.scheduling.book(patient, doctor, str(data.get("date", "")), str(data.get("time", "")))
    return web.json_response(appointment.to_document(), status=201)


async def get_appointment(request: web.Request) -> web.Response:
    appointment = await request.app["data"].scheduling.get(request.match_info["id"])
    return web.json_response(appointment.to_document())


async def update_appointment(request: web.Request) -> web.Response:
    patch = await _json_body(request)
    appointment = await request.app["data"].appointments.update(
        request.match_info["id"], patch, missing_ok=False
    )
    return web.json_response(appointment.to_document())


async def delete_appointment(request: web.Request) -> web.Response:
    await request.app["data"].appointments.delete(request.match_info["id"], missing_ok=False)
    return web.json_response({"deleted": True})


async def confirm_appointment(request: web.Request) -> web.Response:
    appointment = await request.app["data"].scheduling.confirm(request.match_info["id"])
    return web.json_response(appointment.to_document())


async def cancel_appointment(request: web.Request) -> web.Response:
    """
    Cancel an appointment.

    Request body (optional):
    {
        "reason": "Doctor unavailable"
    }
    """
    data = await _json_body(request) if request.can_read_body else {}
    appointment = await request.app["data"].scheduling.cancel(request.match_info["id"], data.get("reason"))
    return web.json_response(appointment.to_document())


# ==================== Users ====================

async def list_users(request: web.Request) -> web.Response:
    """
    List registered users.

    Query params:
    - role: admin, doctor or patient
    """
    users = request.app["data"].users
    role = request.query.get("role")
    try:
        result = await users.with_role(role) if role else await users.get_all()
    except ValueError:
        return web.json_response({"error": f"Unknown role {role}"}, status=400)
    return web.json_response({"users": _documents(result)})


async def add_user(request: web.Request) -> web.Response:
    user = await request.app["data"].users.add(await _json_body(request))
    return web.json_response(user.to_document(), status=201)


# ==================== Notifications ====================

async def list_notifications(request: web.Request) -> web.Response:
    notifications = await request.app["data"].notifications.list(request.match_info["user_id"])
    return web.json_response({"notifications": _documents(notifications)})


async def unread_count(request: web.Request) -> web.Response:
    user_id = request.match_info["user_id"]
    count = await request.app["data"].notifications.unread_count(user_id)
    return web.json_response({"userId": user_id, "unread": count})


async def mark_all_read(request: web.Request) -> web.Response:
    changed = await request.app["data"].notifications.mark_all_read(request.match_info["user_id"])
    return web.json_response({"updated": changed})


async def mark_read(request: web.Request) -> web.Response:
    updated = await request.app["data"].notifications.mark_read(request.match_info["id"])
    return web.json_response({"updated": updated})


async def delete_notification(request: web.Request) -> web.Response:
    deleted = await request.app["data"].notifications.delete(request.match_info["id"])
    return web.json_response({"deleted": deleted})


# ==================== Statistics ====================

async def general_statistics(request: web.Request) -> web.Response:
    """
    Get admin dashboard statistics.

    Query params:
    - top: number of specialties in the ranking (default 3)
    """
    top = request.query.get("top", "3")
    if not top.isdecimal():
        return web.json_response({"error": "top must be a non-negative integer"}, status=400)
    stats = await request.app["data"].statistics.compute_general()
    return web.json_response({
        "statistics": stats.to_document(),
        "topSpecialties": [
            {"specialty": name, "count": count}
            for name, count in top_specialties(stats.specialties, limit=int(top))
        ],
    })


async def doctor_statistics(request: web.Request) -> web.Response:
    stats = await request.app["data"].statistics.compute_for_doctor(request.match_info["id"])
    return web.json_response(stats.to_document())


async def patient_statistics(request: web.Request) -> web.Response:
    stats = await request.app["data"].statistics.compute_for_patient(request.match_info["id"])
    return web.json_response(stats.to_document())


# ==================== Settings ====================

async def get_app_settings(request: web.Request) -> web.Response:
    settings = await request.app["data"].app_settings.get()
    return web.json_response(settings.to_document())


async def update_app_settings(request: web.Request) -> web.Response:
    settings = await request.app["data"].app_settings.update(await _json_body(request))
    return web.json_response(settings.to_document())


# ==================== Backup & Storage ====================

async def create_backup(request: web.Request) -> web.Response:
    backup = await request.app["data"].backups.create_backup()
    return web.Response(text=backup, content_type="application/json")


async def restore_backup(request: web.Request) -> web.Response:
    """Restore from the backup JSON sent as the request body."""
    try:
        backup = await request.text()
    except UnicodeDecodeError as e:
        raise SerializationError(f"Backup is not valid UTF-8: {e}") from e
    snapshot = await request.app["data"].backups.restore(backup)
    return web.json_response({
        "restored": True,
        "timestamp": snapshot.timestamp,
        "appointments": len(snapshot.data.appointments),
        "notifications": len(snapshot.data.notifications),
        "registeredUsers": len(snapshot.data.registered_users),
    })


async def storage_info(request: web.Request) -> web.Response:
    info = await request.app["data"].store.storage_info()
    return web.json_response(info.to_document())


async def clear_cache(request: web.Request) -> web.Response:
    request.app["data"].store.clear_cache()
    return web.json_response({"cleared": "cache"})


async def clear_storage(request: web.Request) -> web.Response:
    await request.app["data"].store.clear_all()
    return web.json_response({"cleared": "all"})


# ==================== Session ====================

async def get_session(request: web.Request) -> web.Response:
    session = await request.app["data"].sessions.current_session()
    if session is None:
        return web.json_response({"authenticated": False})
    return web.json_response({"authenticated": True, **session.to_document()})


async def sign_in(request: web.Request) -> web.Response:
    """
    Store the signed-in user.

    Request body:
    {
        "user": {"id": "admin", "name": "...", "email": "...", "image": "...", "role": "admin"},
        "token": "admin-token"
    }
    """
    data = await _json_body(request)
    session = await request.app["data"].sessions.sign_in(data.get("user"), str(data.get("token") or ""))
    return web.json_response({"authenticated": True, **session.to_document()})


async def sign_out(request: web.Request) -> web.Response:
    await request.app["data"].sessions.sign_out()
    return web.json_response({"authenticated": False})
