from django.urls import path
from . import views

urlpatterns = [
    path('skills/', views.list_skills, name='list-skills'),
    path('students/profile/', views.student_profile, name='student-profile'),
    path('students/skills/', views.add_skills, name='student-skills'),
    path('students/skills/<int:skill_id>/', views.remove_skill, name='student-skill-remove'),
    path('employers/profile/', views.employer_profile, name='employer-profile'),
]
