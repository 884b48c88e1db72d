from django.urls import path
from .views import JobDetailView, JobListView, TriggerPipelineView

urlpatterns = [
    path("pipelines/", TriggerPipelineView.as_view(), name="trigger_pipeline"),
    path("jobs/", JobListView.as_view(), name="job_list"),
    path("jobs/<uuid:job_id>/", JobDetailView.as_view(), name="job_detail"),
]
