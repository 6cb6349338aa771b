from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.permissions import IsOwner
from core.services.audit import recent_activity
from core.services.halls import halls_for, serialize_hall
from core.services.institutes import institute_or_404, owner_stats


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsOwner])
def profile(request):
    institute = institute_or_404(request.user.institute_id)
    return Response({
        'ownerName': institute.owner_name,
        'email': institute.email,
        'instituteId': institute.institute_id,
        'instituteName': institute.name,
        'eiin': institute.eiin,
        'type': institute.type,
        'location': institute.location,
        'contact': institute.contact,
        'address': institute.address,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsOwner])
def stats(request):
    return Response(owner_stats(request.user.institute_id))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsOwner])
def dashboard_summary(request):
    halls = halls_for(request.user).order_by('-created_at')[:5]
    return Response({
        'recentHalls': [serialize_hall(h, with_stats=False) for h in halls],
        'activities': recent_activity(request.user.institute_id),
    })
