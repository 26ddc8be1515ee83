from django.http import HttpResponse
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .exceptions import EventNotFoundError, NotEventOwnerError, StaleEventError
from .permissions import IsEventOwner
from .serializers import (
    LedgerEventSerializer,
    LedgerEventListSerializer,
    LedgerSummarySerializer,
    PayingNoticeSerializer,
    # Input serializers
    EventCreateSerializer,
    EventRenameSerializer,
    TotalCostInputSerializer,
    GuestCreateSerializer,
    GuestUpdateSerializer,
    PaymentInfoInputSerializer,
    PaymentProofUploadSerializer,
)
from .services import (
    create_event,
    get_event,
    list_events,
    rename_event,
    delete_event,
    set_total_cost,
    get_event_summary,
    add_guest,
    update_guest,
    remove_guest,
    set_payment_info,
    upload_payment_proof,
    signal_paying,
    PaymentKeyQRGenerator,
    # Exceptions
    InvalidEventNameError,
    LedgerSyncError,
    PaymentKeyMissingError,
)


class EventPagination(PageNumberPagination):
    """Custom pagination for events."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class EventViewSet(viewsets.GenericViewSet):
    """
    ViewSet for events and their guest ledgers.

    All business logic is handled by services.
    Views are thin HTTP handlers only.

    list: Get events owned by the current user
    create: Create a new, empty event
    retrieve: Get an event (any authenticated user)
    partial_update: Rename an event (owner only)
    destroy: Delete an event (owner only)
    """

    serializer_class = LedgerEventSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = EventPagination

    def handle_exception(self, exc):
        """
        Map domain errors to HTTP responses in one place.

        NotEventOwnerError -> 403, EventNotFoundError -> 404,
        StaleEventError -> 409 (with current_version),
        LedgerSyncError -> 503 (with retryable), PaymentKeyMissingError -> 404,
        InvalidEventNameError -> 400. Anything else goes to DRF.
        """
        if isinstance(exc, NotEventOwnerError):
            return Response({'error': str(exc)}, status=status.HTTP_403_FORBIDDEN)
        if isinstance(exc, EventNotFoundError):
            return Response({'error': 'Event not found'}, status=status.HTTP_404_NOT_FOUND)
        if isinstance(exc, StaleEventError):
            return Response({
                'error': str(exc),
                'current_version': exc.current_version,
            }, status=status.HTTP_409_CONFLICT)
        if isinstance(exc, LedgerSyncError):
            return Response({
                'error': str(exc),
                'retryable': exc.retryable,
            }, status=status.HTTP_503_SERVICE_UNAVAILABLE)
        if isinstance(exc, PaymentKeyMissingError):
            return Response({'error': str(exc)}, status=status.HTTP_404_NOT_FOUND)
        if isinstance(exc, InvalidEventNameError):
            return Response({'error': str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return super().handle_exception(exc)

    def _event_response(self, event, status_code=status.HTTP_200_OK):
        serializer = LedgerEventSerializer(event, context={'request': self.request})
        return Response(serializer.data, status=status_code)

    def list(self, request):
        """Get all events owned by the current user."""
        events = list_events(owner_id=request.user.id)
        page = self.paginate_queryset(events)
        if page is not None:
            serializer = LedgerEventListSerializer(page, many=True)
            return self.get_paginated_response(serializer.data)
        return Response(LedgerEventListSerializer(events, many=True).data)

    @extend_schema(request=EventCreateSerializer, responses={201: LedgerEventSerializer})
    def create(self, request):
        """Create a new event owned by the current user."""
        serializer = EventCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        event = create_event(
            owner_id=request.user.id,
            name=serializer.validated_data['name']
        )
        return self._event_response(event, status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        """Get an event with its guests and payment information."""
        return self._event_response(get_event(event_id=pk))

    @extend_schema(request=EventRenameSerializer, responses={200: LedgerEventSerializer})
    def partial_update(self, request, pk=None):
        """Rename an event."""
        serializer = EventRenameSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        event = rename_event(
            event_id=pk,
            actor_id=request.user.id,
            name=serializer.validated_data['name'],
            expected_version=serializer.validated_data.get('version')
        )
        return self._event_response(event)

    def destroy(self, request, pk=None):
        """Delete an event."""
        delete_event(event_id=pk, actor_id=request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=TotalCostInputSerializer, responses={200: LedgerEventSerializer})
    @action(detail=True, methods=['post'])
    def total_cost(self, request, pk=None):
        """
        Set the declared total cost.

        POST /api/events/{id}/total_cost/
        Body: {"total_cost": "150.00", "version": 3}
        """
        serializer = TotalCostInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        event = set_total_cost(
            event_id=pk,
            actor_id=request.user.id,
            raw_input=serializer.validated_data.get('total_cost'),
            expected_version=serializer.validated_data.get('version')
        )
        return self._event_response(event)

    @extend_schema(request=GuestCreateSerializer, responses={201: LedgerEventSerializer})
    @action(detail=True, methods=['post'])
    def guests(self, request, pk=None):
        """
        Add a guest.

        POST /api/events/{id}/guests/
        Body: {"name": "Ana", "amount_paid": "30", "has_paid": true}
        """
        serializer = GuestCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        event = add_guest(
            event_id=pk,
            actor_id=request.user.id,
            name=data['name'],
            raw_amount=data.get('amount_paid'),
            has_paid=data.get('has_paid', False),
            expected_version=data.get('version')
        )

        # Blank names are a no-op in the ledger
        return self._event_response(
            event,
            status.HTTP_201_CREATED if data['name'] else status.HTTP_200_OK
        )

    @extend_schema(request=GuestUpdateSerializer, responses={200: LedgerEventSerializer})
    @action(
        detail=True,
        methods=['patch', 'delete'],
        url_path=r'guests/(?P<guest_id>[^/.]+)',
        url_name='guest-detail'
    )
    def guest_detail(self, request, pk=None, guest_id=None):
        """
        Update or remove a guest. Unknown guest IDs leave the event unchanged.

        PATCH  /api/events/{id}/guests/{guest_id}/
        DELETE /api/events/{id}/guests/{guest_id}/
        """
        if request.method == 'DELETE':
            event = remove_guest(
                event_id=pk,
                actor_id=request.user.id,
                guest_id=guest_id,
                expected_version=self._version_param(request)
            )
            return self._event_response(event)

        serializer = GuestUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        event = update_guest(
            event_id=pk,
            actor_id=request.user.id,
            guest_id=guest_id,
            raw_amount=serializer.validated_data.get('amount_paid'),
            has_paid=serializer.validated_data['has_paid'],
            expected_version=serializer.validated_data.get('version')
        )
        return self._event_response(event)

    @extend_schema(request=PaymentInfoInputSerializer, responses={200: LedgerEventSerializer})
    @action(detail=True, methods=['put'])
    def payment_info(self, request, pk=None):
        """
        Replace the payment key and proof locator.

        PUT /api/events/{id}/payment_info/
        Body: {"payment_key": "...", "payment_proof_url": "..."}
        """
        serializer = PaymentInfoInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        event = set_payment_info(
            event_id=pk,
            actor_id=request.user.id,
            payment_key=serializer.validated_data['payment_key'],
            proof_url=serializer.validated_data.get('payment_proof_url'),
            expected_version=serializer.validated_data.get('version')
        )
        return self._event_response(event)

    @extend_schema(request=PaymentProofUploadSerializer, responses={200: LedgerEventSerializer})
    @action(detail=True, methods=['post'], parser_classes=[MultiPartParser, FormParser])
    def payment_proof(self, request, pk=None):
        """
        Upload a payment proof image.

        POST /api/events/{id}/payment_proof/  (multipart, field "image")
        """
        serializer = PaymentProofUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        event = upload_payment_proof(
            event_id=pk,
            actor_id=request.user.id,
            upload=serializer.validated_data['image'],
            expected_version=serializer.validated_data.get('version')
        )
        return self._event_response(event)

    @extend_schema(responses={200: LedgerSummarySerializer})
    @action(detail=True, methods=['get'], permission_classes=[IsAuthenticated, IsEventOwner])
    def summary(self, request, pk=None):
        """
        Get the financial summary of an event.

        GET /api/events/{id}/summary/
        """
        event = get_event(event_id=pk)
        self.check_object_permissions(request, event)

        summary = get_event_summary(event_id=event.id, actor_id=request.user.id)
        return Response(LedgerSummarySerializer(summary).data)

    @extend_schema(request=None, responses={200: PayingNoticeSerializer})
    @action(detail=True, methods=['post'])
    def paying(self, request, pk=None):
        """
        Signal "I am paying" and get the payment details.

        POST /api/events/{id}/paying/
        """
        notice = signal_paying(event_id=pk, actor_id=request.user.id)
        return Response(PayingNoticeSerializer(notice).data)

    @extend_schema(responses={(200, 'image/png'): OpenApiTypes.BINARY})
    @action(detail=True, methods=['get'])
    def payment_qr(self, request, pk=None):
        """
        Get the payment key as a PNG QR code.

        GET /api/events/{id}/payment_qr/
        """
        png = PaymentKeyQRGenerator.generate_for_event(event_id=pk)
        return HttpResponse(png, content_type='image/png')

    @staticmethod
    def _version_param(request):
        """Read an optional ?version= query parameter."""
        raw = request.query_params.get('version')
        if raw is None:
            return None
        try:
            return int(raw)
        except (TypeError, ValueError):
            return None
