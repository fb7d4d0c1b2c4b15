"""
Administrative user management.

Everything here is admin-only except the provider list, which feeds the
appointment and care team pickers.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.permissions import IsAdminRole
from clinic.serializers.user import UserQuerySerializer, UserSerializer
from clinic.services import users as svc
from clinic.services.paging import paginate


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def users_collection(request):
    if request.method == 'POST':
        s = UserSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        user, generated = svc.create_user(s.validated_data)
        data = svc.serialize_user(user)
        if generated:
            data['temporaryPassword'] = generated
        return Response({'ok': True, 'data': data}, status=201)

    q = UserQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.list_users(search=vd.get('search'), role=vd.get('role'), hub=vd.get('hub'),
                        is_active=vd.get('isActive'))
    items, pagination = paginate(qs, vd.get('page'), vd.get('limit'))
    return Response({'ok': True, 'data': [svc.serialize_user(u) for u in items], 'pagination': pagination})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_detail(request, user_id: int):
    user = svc.get_user(user_id)
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_user(user)})
    if request.method == 'DELETE':
        user = svc.deactivate_user(request.user, user)
        return Response({'ok': True, 'data': svc.serialize_user(user)})

    s = UserSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    user = svc.update_user(request.user, user, s.validated_data)
    return Response({'ok': True, 'data': svc.serialize_user(user)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def providers(request):
    return Response({'ok': True, 'data': [svc.serialize_user(u) for u in svc.list_providers()]})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def roles(request):
    return Response({'ok': True, 'data': svc.role_matrix()})
