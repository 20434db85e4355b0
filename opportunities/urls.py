from django.urls import path
from . import views

urlpatterns = [
    path('opportunities/', views.opportunity_list, name='opportunity-list'),
    path('opportunities/saved/', views.saved_opportunities, name='saved-opportunities'),
    path('opportunities/<int:opportunity_id>/', views.opportunity_detail, name='opportunity-detail'),
    path('opportunities/<int:opportunity_id>/save/', views.save_opportunity, name='save-opportunity'),

    path('applications/', views.apply, name='apply'),
    path('applications/student/', views.student_applications, name='student-applications'),
    path('applications/opportunity/<int:opportunity_id>/',
         views.opportunity_applications,
         name='opportunity-applications'),
    path('applications/<int:application_id>/', views.update_application, name='update-application'),
]
