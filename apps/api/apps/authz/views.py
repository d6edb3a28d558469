"""
Authz views for the psychologist directory.
"""
from rest_framework import status, viewsets
from rest_framework.response import Response

from apps.authz.models import Psychologist
from apps.authz.permissions import IsAdminOrReadOnly
from apps.authz.serializers import PsychologistSerializer
from apps.core.registry import get_registry


class PsychologistViewSet(viewsets.ViewSet):
    """
    Psychologist directory endpoints.

    - GET /api/v1/authz/psychologists/ - List (active only unless ?include_inactive=true)
    - GET /api/v1/authz/psychologists/{id}/ - Detail
    - PUT /api/v1/authz/psychologists/{id}/ - Create or replace (Admin only)

    The id is the psychologist's user id, i.e. the ``user_id`` claim of
    their token.
    """
    permission_classes = [IsAdminOrReadOnly]
    lookup_value_regex = '[^/]+'

    def list(self, request):
        include_inactive = request.query_params.get('include_inactive', 'false').lower() == 'true'
        psychologists = get_registry().directory.list(include_inactive=include_inactive)
        return Response(PsychologistSerializer(psychologists, many=True).data)

    def retrieve(self, request, pk=None):
        psychologist = get_registry().directory.get(pk)
        if psychologist is None:
            return Response({'error': 'Psychologist not found'}, status=status.HTTP_404_NOT_FOUND)
        return Response(PsychologistSerializer(psychologist).data)

    def update(self, request, pk=None):
        directory = get_registry().directory
        serializer = PsychologistSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        existed = directory.get(pk) is not None
        psychologist = directory.register(Psychologist(id=pk, **serializer.validated_data))

        return Response(
            PsychologistSerializer(psychologist).data,
            status=status.HTTP_200_OK if existed else status.HTTP_201_CREATED
        )
