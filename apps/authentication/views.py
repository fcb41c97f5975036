import logging

from django.conf import settings
from django.contrib.auth import authenticate
from django.db import transaction
from rest_framework import views, status, permissions
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken

from .models import User
from .rate_limiting import check_attempt_limit, increment_failed_attempts, clear_failed_attempts
from .serializers import RegisterSerializer, LoginSerializer, UserSerializer

logger = logging.getLogger(__name__)


def _token_payload(user):
    refresh = RefreshToken.for_user(user)
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
        'user': UserSerializer(user).data,
    }


class RegisterView(views.APIView):
    """POST /api/auth/register/ — Create an account and return a token pair."""
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        with transaction.atomic():
            user = User.objects.create_user(
                email=data['email'],
                password=data['password'],
                first_name=data['first_name'].strip(),
                last_name=data['last_name'].strip(),
                phone=data.get('phone', ''),
            )

        logger.info("Registration successful for %s (user_id=%s)", user.email, user.id)
        return Response(_token_payload(user), status=status.HTTP_201_CREATED)


class LoginView(views.APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        """
        Expecting:
        {
            "email": "<email>",
            "password": "<password>"
        }
        """
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        email = serializer.validated_data['email']
        max_attempts = settings.LOGIN_MAX_ATTEMPTS
        window = settings.LOGIN_ATTEMPT_WINDOW_MINUTES

        is_allowed, _, reset_time = check_attempt_limit(
            email, action='login', max_attempts=max_attempts, window_minutes=window
        )
        if not is_allowed:
            logger.warning("Login blocked — too many attempts for '%s'", email)
            return Response({
                "error": f"Too many failed attempts. Try again in {reset_time} seconds.",
                "code": "rate_limited",
            }, status=status.HTTP_429_TOO_MANY_REQUESTS)

        user = authenticate(request, username=email, password=serializer.validated_data['password'])
        if not user:
            remaining = increment_failed_attempts(
                email, action='login', max_attempts=max_attempts, window_minutes=window
            )
            logger.warning("Login failed — invalid credentials for '%s' (%s attempts left)", email, remaining)
            return Response({"error": "Invalid credentials", "code": "invalid_credentials"},
                            status=status.HTTP_401_UNAUTHORIZED)

        clear_failed_attempts(email, action='login')
        logger.info("Login success for %s (user_id=%s)", user.email, user.id)
        return Response(_token_payload(user), status=status.HTTP_200_OK)


class MeView(views.APIView):
    """
    GET /api/auth/me/ — Current user profile
    PATCH /api/auth/me/ — Update name, phone and address
    """

    def get(self, request):
        return Response(UserSerializer(request.user).data)

    def patch(self, request):
        serializer = UserSerializer(request.user, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        return Response(serializer.data)
