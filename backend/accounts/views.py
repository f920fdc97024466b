from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import resolve_actor, require_role
from accounts.commands import (
    create_user_with_membership,
    deactivate_membership,
    update_membership_role,
)
from accounts.models import CompanyMembership
from accounts.roles import Role
from accounts.serializers import (
    CompanySerializer,
    EmailTokenObtainPairSerializer,
    MembershipRoleSerializer,
    MembershipSerializer,
    UserCreateSerializer,
    UserSerializer,
)
from accounting.policies import allowed_operations


class LoginView(generics.GenericAPIView):
    serializer_class = EmailTokenObtainPairSerializer
    permission_classes = [permissions.AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return Response(serializer.validated_data, status=status.HTTP_200_OK)


class MeView(APIView):
    """Current user, active company, role and the journal operations the role allows."""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, *args, **kwargs):
        actor = resolve_actor(request)
        return Response({
            "user": UserSerializer(actor.user).data,
            "company": CompanySerializer(actor.company).data,
            "role": actor.role.value,
            "allowed_operations": allowed_operations(actor.role),
        })


class UserListCreateView(APIView):
    """
    GET /api/users/ -> memberships of the active company (ADMIN)
    POST /api/users/ -> create a user with a membership (ADMIN)
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require_role(actor, Role.ADMIN)
        memberships = CompanyMembership.objects.filter(company=actor.company).select_related("user").order_by("id")
        return Response(MembershipSerializer(memberships, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = create_user_with_membership(actor, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(MembershipSerializer(result.data["membership"]).data, status=status.HTTP_201_CREATED)


class MembershipRoleView(APIView):
    """PATCH /api/memberships/<pk>/role/ -> change role (ADMIN)"""
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, pk):
        actor = resolve_actor(request)
        serializer = MembershipRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = update_membership_role(actor, pk, serializer.validated_data["role"])
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(MembershipSerializer(result.data).data)


class MembershipDetailView(APIView):
    """DELETE /api/memberships/<pk>/ -> deactivate (ADMIN)"""
    permission_classes = [permissions.IsAuthenticated]

    def delete(self, request, pk):
        actor = resolve_actor(request)
        result = deactivate_membership(actor, pk)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)
