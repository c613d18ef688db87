from django.urls import path
from . import views

urlpatterns = [
    path('', views.bookings, name='bookings'),
    path('availability/', views.available_slots, name='available_slots'),
    path('stats/', views.stats, name='booking_stats'),
    path('<int:booking_id>/', views.get_booking, name='get_booking'),
    path('<int:booking_id>/update/', views.edit_booking, name='edit_booking'),
    path('<int:booking_id>/status/', views.change_booking_status, name='change_booking_status'),
    path('<int:booking_id>/cancel/', views.cancel, name='cancel_booking'),
]
