from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'events'

router = DefaultRouter()
router.register(r'', views.EventViewSet, basename='event')

urlpatterns = [
    # GET    /api/events/                          - List own events
    # POST   /api/events/                          - Create event
    # GET    /api/events/{id}/                     - Get event details
    # PATCH  /api/events/{id}/                     - Rename event
    # DELETE /api/events/{id}/                     - Delete event

    # Ledger actions
    # POST   /api/events/{id}/total_cost/          - Set total cost
    # POST   /api/events/{id}/guests/              - Add guest
    # PATCH  /api/events/{id}/guests/{guest_id}/   - Update guest payment
    # DELETE /api/events/{id}/guests/{guest_id}/   - Remove guest
    # GET    /api/events/{id}/summary/             - Financial summary (owner)

    # Payment collection
    # PUT    /api/events/{id}/payment_info/        - Set payment key and proof
    # POST   /api/events/{id}/payment_proof/       - Upload proof image
    # POST   /api/events/{id}/paying/              - "I am paying"
    # GET    /api/events/{id}/payment_qr/          - Payment key QR code
    path('', include(router.urls)),
]
