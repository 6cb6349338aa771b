"""Public institute registration and lookup."""
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from core.models import Institute
from core.serializers.institute import InstituteRegisterSerializer
from core.services.institutes import register_institute


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    s = InstituteRegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    institute = register_institute(s.validated_data)
    return Response({
        'message': 'Institute registered successfully',
        'instituteId': institute.institute_id,
        'instituteName': institute.name,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([AllowAny])
def verify(request, institute_id):
    institute = Institute.objects.filter(institute_id=institute_id, is_active=True).first()
    if institute is None:
        return Response({'exists': False, 'message': 'Institute not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response({'exists': True, 'instituteName': institute.name, 'instituteType': institute.type})
