from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import path, include
from main.views import admin as admin_views

urlpatterns = [
    path('django-admin/', admin.site.urls),

    path('api/auth/', include('users.urls')),
    path('api/opportunities/recommended/', include('recommendations.urls')),
    path('api/certificates/', include('certificates.urls')),
    path('api/', include('profiles.urls')),
    path('api/', include('opportunities.urls')),

    path('api/admin/stats/', admin_views.stats, name='admin-stats'),
    path('api/admin/employers/', admin_views.employers, name='admin-employers'),
    path('api/admin/employers/<int:employer_id>/verify/',
         admin_views.verify_employer_view,
         name='admin-verify-employer'),
    path('api/admin/opportunities/<int:opportunity_id>/verify/',
         admin_views.verify_opportunity_view,
         name='admin-verify-opportunity'),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
