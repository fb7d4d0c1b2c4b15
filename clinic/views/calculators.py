from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.serializers.calculators import INPUT_SERIALIZERS
from clinic.services.calculators import CALCULATORS, get_calculator


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def list_calculators(request):
    data = [
        {'name': c.name, 'title': c.title, 'description': c.description}
        for c in CALCULATORS.values()
    ]
    return Response({'ok': True, 'data': data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def evaluate_calculator(request, name: str):
    calc = get_calculator(name)
    s = INPUT_SERIALIZERS[calc.name](data=request.data)
    s.is_valid(raise_exception=True)
    result = calc.func(**s.validated_data)
    return Response({'ok': True, 'data': result.as_dict()})
