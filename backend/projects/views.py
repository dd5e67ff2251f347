# projects/views.py
"""
Project API views.

Endpoints:
    GET/POST    /api/projects/
    GET/PATCH   /api/projects/<pk>/

PATCH with status=COMPLETED recognizes the project budget as revenue.
"""

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from django.shortcuts import get_object_or_404

from accounts.authz import resolve_actor, require
from accounting.views import failure_response
from .models import Project
from .serializers import ProjectSerializer, ProjectInputSerializer
from .commands import create_project, update_project


def _project_queryset():
    return Project.objects.select_related("customer", "revenue_entry")


class ProjectListCreateView(APIView):
    """
    GET /api/projects/ -> list projects (filter: status)
    POST /api/projects/ -> create project
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "projects.view")

        projects = _project_queryset()
        project_status = request.query_params.get("status")
        if project_status:
            projects = projects.filter(status=project_status.upper())

        return Response(ProjectSerializer(projects, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)

        input_serializer = ProjectInputSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        data = dict(input_serializer.validated_data)
        data.pop("completion_date", None)

        result = create_project(actor, **data)

        if not result.success:
            return failure_response(result)

        return Response(ProjectSerializer(result.data).data, status=status.HTTP_201_CREATED)


class ProjectDetailView(APIView):
    """
    GET /api/projects/<pk>/ -> retrieve
    PATCH /api/projects/<pk>/ -> update (completion posts revenue)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "projects.view")

        project = get_object_or_404(_project_queryset(), pk=pk)
        return Response(ProjectSerializer(project).data)

    def patch(self, request, pk):
        actor = resolve_actor(request)

        input_serializer = ProjectInputSerializer(data=request.data, partial=True)
        input_serializer.is_valid(raise_exception=True)
        updates = dict(input_serializer.validated_data)
        updates.pop("code", None)

        result = update_project(actor, pk, **updates)

        if not result.success:
            return failure_response(result)

        return Response(ProjectSerializer(result.data).data)
