"""
URL configuration for duesledger.

  path('', include('finances.urls')),                      # ledger JSON endpoints
  path('communications/', include('communications.urls')), # notification log
"""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('finances.urls')),
    path('communications/', include('communications.urls')),
]
