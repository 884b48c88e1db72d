from rest_framework import status, views
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .models import Job
from .serializers import (
    JobSerializer,
    JobSummarySerializer,
    TriggerRequestSerializer,
    TriggerResponseSerializer,
)
from .tasks import launch


class TriggerPipelineView(views.APIView):
    """
    Starts a pipeline instance on demand. Profile and styles are optional;
    missing ones are picked at random, exactly like the scheduled trigger.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        ser = TriggerRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        started = launch(
            ser.validated_data.get("profile") or None,
            ser.validated_data.get("styles") or None,
        )
        return Response(TriggerResponseSerializer(started).data, status=status.HTTP_202_ACCEPTED)


class JobListView(views.APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        jobs = Job.objects.all()
        for field in ("stage", "state"):
            value = request.query_params.get(field)
            if value:
                jobs = jobs.filter(**{field: value})
        return Response(JobSummarySerializer(jobs[:50], many=True).data)


class JobDetailView(views.APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request, job_id):
        try:
            job = Job.objects.get(pk=job_id)
        except Job.DoesNotExist:
            return Response({"detail": "Not found"}, status=404)

        return Response(JobSerializer(job).data)
