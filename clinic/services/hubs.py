"""
Hubs (specialty departments) and their functions, resources and notes.
"""
from __future__ import annotations

import logging

from django.db import transaction
from django.utils.text import slugify

from clinic.exceptions import ConflictError, NotFoundError, ValidationError
from clinic.models import Hub, HubFunction, HubNote, HubResource

logger = logging.getLogger(__name__)

DEFAULT_HUBS = [
    {
        'id': 'cardiology',
        'name': 'Cardiology',
        'description': 'Heart and cardiovascular care, including heart disease management, cardiac procedures, and cardiovascular monitoring.',
        'color': 'red',
        'specialties': ['cardiology', 'cardiac', 'cardiac_surgery'],
    },
    {
        'id': 'oncology',
        'name': 'Oncology',
        'description': 'Cancer care and treatment, including chemotherapy, radiation therapy, and cancer screening programs.',
        'color': 'purple',
        'specialties': ['oncology', 'cancer'],
    },
    {
        'id': 'pediatrics',
        'name': 'Pediatrics',
        'description': 'Medical care for infants, children, and adolescents, including well-child visits and pediatric specialty care.',
        'color': 'blue',
        'specialties': ['pediatrics', 'pediatric'],
    },
    {
        'id': 'orthopedics',
        'name': 'Orthopedics',
        'description': 'Musculoskeletal care, including joint replacement, sports medicine, and fracture management.',
        'color': 'green',
        'specialties': ['orthopedics', 'orthopedic'],
    },
    {
        'id': 'neurology',
        'name': 'Neurology',
        'description': 'Brain and nervous system care, including stroke management, epilepsy treatment, and neurological disorders.',
        'color': 'indigo',
        'specialties': ['neurology', 'neurological'],
    },
    {
        'id': 'psychiatry',
        'name': 'Psychiatry',
        'description': 'Mental health care, including therapy, medication management, and psychiatric evaluation.',
        'color': 'pink',
        'specialties': ['psychiatry', 'psychiatric'],
    },
    {
        'id': 'dermatology',
        'name': 'Dermatology',
        'description': 'Skin care and treatment, including dermatological conditions, skin cancer screening, and cosmetic procedures.',
        'color': 'orange',
        'specialties': ['dermatology', 'dermatological'],
    },
    {
        'id': 'endocrinology',
        'name': 'Endocrinology',
        'description': 'Hormone and metabolic care, including diabetes management, thyroid disorders, and hormone therapy.',
        'color': 'cyan',
        'specialties': ['endocrinology', 'endocrinology_diabetes'],
    },
    {
        'id': 'gastroenterology',
        'name': 'Gastroenterology',
        'description': 'Digestive system care, including gastrointestinal disorders, endoscopy, and liver disease management.',
        'color': 'yellow',
        'specialties': ['gastroenterology', 'gi', 'gastro'],
    },
    {
        'id': 'emergency',
        'name': 'Emergency Medicine',
        'description': 'Acute care and emergency response, including trauma care, urgent medical conditions, and emergency procedures.',
        'color': 'red',
        'specialties': ['emergency', 'emergency_medicine'],
    },
    {
        'id': 'general_surgery',
        'name': 'General Surgery',
        'description': 'Surgical care and procedures, including general surgery, minimally invasive surgery, and surgical consultations.',
        'color': 'teal',
        'specialties': ['general_surgery', 'surgery', 'surgical'],
    },
]


def hub_slug(name: str) -> str:
    return slugify(name).replace('-', '_')


def seed_default_hubs(*, only_if_empty: bool = False) -> int:
    """Create or refresh the default hubs; returns how many were created."""
    if only_if_empty and Hub.objects.exists():
        logger.debug('Hubs already exist, skipping seed')
        return 0
    created = 0
    with transaction.atomic():
        for data in DEFAULT_HUBS:
            _, was_created = Hub.objects.update_or_create(
                id=data['id'],
                defaults={
                    'name': data['name'],
                    'description': data['description'],
                    'color': data['color'],
                    'specialties': data['specialties'],
                    'is_active': True,
                },
            )
            created += int(was_created)
    logger.info('Seeded hubs: %s created, %s total defaults', created, len(DEFAULT_HUBS))
    return created


# ---------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------
def serialize_hub(hub: Hub, *, detail: bool = False) -> dict:
    data = {
        'id': hub.id,
        'name': hub.name,
        'description': hub.description,
        'color': hub.color,
        'specialties': hub.specialties or [],
        'isActive': hub.is_active,
        'createdAt': hub.created_at.isoformat() if hub.created_at else None,
        'updatedAt': hub.updated_at.isoformat() if hub.updated_at else None,
    }
    if detail:
        data['functions'] = [serialize_function(f) for f in hub.functions.order_by('name')]
        data['resources'] = [serialize_resource(r) for r in hub.resources.order_by('title')]
    return data


def serialize_function(f: HubFunction) -> dict:
    return {
        'id': f.id,
        'hubId': f.hub_id,
        'name': f.name,
        'description': f.description or None,
        'category': f.category or None,
    }


def serialize_resource(r: HubResource) -> dict:
    return {
        'id': r.id,
        'hubId': r.hub_id,
        'title': r.title,
        'type': r.type or None,
        'url': r.url or None,
        'description': r.description or None,
    }


def serialize_note(n: HubNote) -> dict:
    return {
        'id': n.id,
        'hubId': n.hub_id,
        'authorId': n.author_id,
        'authorName': n.author.display_name,
        'content': n.content,
        'createdAt': n.created_at.isoformat() if n.created_at else None,
        'updatedAt': n.updated_at.isoformat() if n.updated_at else None,
    }


# ---------------------------------------------------------------------
# Hubs
# ---------------------------------------------------------------------
def get_hub(hub_id: str) -> Hub:
    hub = Hub.objects.filter(id=hub_id).first()
    if hub is None:
        raise NotFoundError('Hub', hub_id)
    return hub


def list_hubs(*, include_inactive: bool = False):
    qs = Hub.objects.all()
    if not include_inactive:
        qs = qs.filter(is_active=True)
    return qs.order_by('name')


def create_hub(data: dict) -> Hub:
    hub_id = data.get('id') or hub_slug(data['name'])
    if not hub_id:
        raise ValidationError('Hub id could not be derived from name', {'id': ['Required']})
    if Hub.objects.filter(id=hub_id).exists():
        raise ConflictError(f"Hub '{hub_id}' already exists")
    return Hub.objects.create(
        id=hub_id,
        name=data['name'],
        description=data['description'],
        color=data['color'],
        specialties=data.get('specialties') or [],
        is_active=data.get('isActive', True),
    )


def update_hub(hub: Hub, data: dict) -> Hub:
    for key, field in (('name', 'name'), ('description', 'description'), ('color', 'color'),
                       ('specialties', 'specialties'), ('isActive', 'is_active')):
        if key in data and data[key] is not None:
            setattr(hub, field, data[key])
    hub.save()
    return hub


def delete_hub(hub: Hub, *, force: bool = False) -> None:
    """Delete a hub. Refuses while users or patients reference it unless ``force``."""
    in_use = hub.users.exists() or hub.patients.exists()
    if in_use and not force:
        raise ConflictError(f"Hub '{hub.id}' is still referenced by users or patients")
    hub.delete()


# ---------------------------------------------------------------------
# Functions, resources and notes
# ---------------------------------------------------------------------
def get_function(hub: Hub, function_id) -> HubFunction:
    f = hub.functions.filter(id=function_id).first()
    if f is None:
        raise NotFoundError('Hub function', function_id)
    return f


def get_resource(hub: Hub, resource_id) -> HubResource:
    r = hub.resources.filter(id=resource_id).first()
    if r is None:
        raise NotFoundError('Hub resource', resource_id)
    return r


def get_note(hub: Hub, note_id) -> HubNote:
    n = hub.notes.select_related('author').filter(id=note_id).first()
    if n is None:
        raise NotFoundError('Hub note', note_id)
    return n


def save_function(hub: Hub, data: dict, instance: HubFunction | None = None) -> HubFunction:
    f = instance or HubFunction(hub=hub)
    for key in ('name', 'description', 'category'):
        if key in data:
            setattr(f, key, data[key] or '')
    f.save()
    return f


def save_resource(hub: Hub, data: dict, instance: HubResource | None = None) -> HubResource:
    r = instance or HubResource(hub=hub)
    for key in ('title', 'type', 'url', 'description'):
        if key in data:
            setattr(r, key, data[key] or '')
    r.save()
    return r


def save_note(hub: Hub, author, content: str) -> tuple[HubNote, bool]:
    """Create or replace ``author``'s note on ``hub``."""
    note, created = HubNote.objects.update_or_create(
        hub=hub, author=author, defaults={'content': content},
    )
    return note, created
