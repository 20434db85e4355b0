from django.urls import path
from . import views

urlpatterns = [
    path('',
         views.student_recommendations,
         name='student-recommendations'),
]
