from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static

from .views import health_check

urlpatterns = [
    path('admin/', admin.site.urls),
    path("health/", health_check), # Health check endpoint

    # Authentication endpoints (at /api/auth/)
    path('api/auth/', include('accounts.urls')),  # accounts.urls have register, login, refresh endpoints

    # Trip registry (publish, list, details, edit, delete)
    path('api/trips/', include('trips.urls')),

    # Passenger APIs (reserve, amend, cancel, own reservations)
    path('api/passenger/', include('passengers.urls')),

    # Driver APIs (published trips)
    path('api/driver/', include('drivers.urls')),
]

# Serve media files in development
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
