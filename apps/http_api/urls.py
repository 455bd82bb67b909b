from django.http import JsonResponse
from django.urls import path

from apps.checkins.api import CheckInResolveView, CheckInView
from apps.crm.api import LeadCreateView, LeadDetailView, LeadSearchView, LeadUpdateView
from apps.panels.views import stage_event_webhook
from apps.pipeline.api import FinalSyncView, StageTransitionView
from apps.pipeline.views import stage_relay_webhook


def health(request):
    return JsonResponse({"ok": True})


urlpatterns = [
    path('webhooks/stage-event', stage_event_webhook, name='stage-event-webhook'),
    path('webhooks/stage-relay', stage_relay_webhook, name='stage-relay-webhook'),
    path('pipeline/transitions', StageTransitionView.as_view(), name='stage-transitions'),
    path('leads', LeadCreateView.as_view(), name='lead-create'),
    path('leads/search', LeadSearchView.as_view(), name='lead-search'),
    path('leads/<str:lead_id>', LeadDetailView.as_view(), name='lead-detail'),
    path('leads/<str:lead_id>/update', LeadUpdateView.as_view(), name='lead-update'),
    path('leads/<str:lead_id>/final-sync', FinalSyncView.as_view(), name='lead-final-sync'),
    path('checkins', CheckInView.as_view(), name='checkins'),
    path('checkins/resolve', CheckInResolveView.as_view(), name='checkins-resolve'),
    path('health', health, name='health'),
]
