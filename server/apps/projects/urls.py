"""URL routes of the projects app.

Collection and login routes answer with and without a trailing slash.
"""

from django.urls import path, re_path

from server.apps.projects import views

app_name = 'projects'

urlpatterns = [
    re_path(r'^users/login/?$', views.login, name='login'),
    re_path(r'^projects/?$', views.projects, name='projects'),
    path(
        'projects/<int:project_id>',
        views.project_detail,
        name='project-detail',
    ),
    re_path(r'^project_files/?$', views.project_files, name='project-files'),
    path(
        'project_files/<int:file_id>',
        views.project_file_detail,
        name='project-file-detail',
    ),
]
