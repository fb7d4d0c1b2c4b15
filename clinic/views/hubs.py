from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.exceptions import ForbiddenError
from clinic.permissions import ADMINS, CanEditHubContent, CanEditHubNotes, CanEditHubs, has_role
from clinic.serializers.hub import HubFunctionSerializer, HubNoteSerializer, HubResourceSerializer, HubSerializer
from clinic.services import hubs as svc


def _flag(request, name: str) -> bool:
    return str(request.query_params.get(name, '')).lower() in ('1', 'true', 'yes')


# ---------------------------------------------------------------------
# Hubs
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanEditHubs])
def hubs_collection(request):
    if request.method == 'POST':
        s = HubSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        hub = svc.create_hub(s.validated_data)
        return Response({'ok': True, 'data': svc.serialize_hub(hub)}, status=201)

    hubs = svc.list_hubs(include_inactive=_flag(request, 'includeInactive'))
    return Response({'ok': True, 'data': [svc.serialize_hub(h) for h in hubs]})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanEditHubs])
def hub_detail(request, hub_id: str):
    hub = svc.get_hub(hub_id)
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_hub(hub, detail=True)})
    if request.method == 'DELETE':
        svc.delete_hub(hub, force=_flag(request, 'force'))
        return Response({'ok': True, 'data': {'id': hub_id}})

    s = HubSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    data = dict(s.validated_data)
    data.pop('id', None)
    hub = svc.update_hub(hub, data)
    return Response({'ok': True, 'data': svc.serialize_hub(hub, detail=True)})


# ---------------------------------------------------------------------
# Functions & resources
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanEditHubContent])
def hub_functions(request, hub_id: str):
    hub = svc.get_hub(hub_id)
    if request.method == 'POST':
        s = HubFunctionSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        f = svc.save_function(hub, s.validated_data)
        return Response({'ok': True, 'data': svc.serialize_function(f)}, status=201)
    return Response({'ok': True, 'data': [svc.serialize_function(f) for f in hub.functions.order_by('name')]})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanEditHubContent])
def hub_function_detail(request, hub_id: str, function_id: int):
    hub = svc.get_hub(hub_id)
    f = svc.get_function(hub, function_id)
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_function(f)})
    if request.method == 'DELETE':
        f.delete()
        return Response({'ok': True, 'data': {'id': function_id}})
    s = HubFunctionSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    f = svc.save_function(hub, s.validated_data, instance=f)
    return Response({'ok': True, 'data': svc.serialize_function(f)})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanEditHubContent])
def hub_resources(request, hub_id: str):
    hub = svc.get_hub(hub_id)
    if request.method == 'POST':
        s = HubResourceSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        r = svc.save_resource(hub, s.validated_data)
        return Response({'ok': True, 'data': svc.serialize_resource(r)}, status=201)
    return Response({'ok': True, 'data': [svc.serialize_resource(r) for r in hub.resources.order_by('title')]})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanEditHubContent])
def hub_resource_detail(request, hub_id: str, resource_id: int):
    hub = svc.get_hub(hub_id)
    r = svc.get_resource(hub, resource_id)
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_resource(r)})
    if request.method == 'DELETE':
        r.delete()
        return Response({'ok': True, 'data': {'id': resource_id}})
    s = HubResourceSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    r = svc.save_resource(hub, s.validated_data, instance=r)
    return Response({'ok': True, 'data': svc.serialize_resource(r)})


# ---------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanEditHubNotes])
def hub_notes(request, hub_id: str):
    """POST creates the caller's note or replaces it if one exists."""
    hub = svc.get_hub(hub_id)
    if request.method == 'POST':
        s = HubNoteSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        note, created = svc.save_note(hub, request.user, s.validated_data['content'])
        return Response({'ok': True, 'data': svc.serialize_note(note)}, status=201 if created else 200)
    notes = hub.notes.select_related('author').order_by('-updated_at')
    return Response({'ok': True, 'data': [svc.serialize_note(n) for n in notes]})


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, CanEditHubNotes])
def hub_note_detail(request, hub_id: str, note_id: int):
    hub = svc.get_hub(hub_id)
    note = svc.get_note(hub, note_id)
    if request.method == 'DELETE':
        if note.author_id != request.user.id and not has_role(request.user, ADMINS):
            raise ForbiddenError('Only the author can delete this note')
        note.delete()
        return Response({'ok': True, 'data': {'id': note_id}})
    return Response({'ok': True, 'data': svc.serialize_note(note)})
