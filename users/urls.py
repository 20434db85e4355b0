from django.urls import path
from .views import login, logout, me, register

urlpatterns = [
    path('login/', login, name='login'),
    path('logout/', logout, name='logout'),
    path('me/', me, name='me'),
    path('register/', register, name='register'),
]

"""
Authentication Error Codes
--------------------------
0x10 - Missing/invalid registration or login fields
0x11 - Invalid credentials (login)
0x12 - Account not active (pending, inactive or banned)
0x20 - Missing/invalid auth token
0x62 - Unsupported Content-Type
0x70 - Role or ownership check failed
0x90 - Email already exists
"""
